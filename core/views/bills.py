"""
Billing endpoints.

Totals and statuses are never taken from the client: every write runs
through :mod:`core.services.billing`, which recomputes them from the
service lines and the paid amount.

There is no DELETE route, so ``DELETE /api/bills/<id>`` answers 405.  A
bill is a financial record, and the only way to void one would be a
``cancelled`` status, which the bill status set (pending, paid,
partially-paid, overdue) does not have.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.serializers.bill import BillSerializer, PaymentSerializer
from core.services import billing
from core.services.audit import log_action

from ..models import Bill, Patient
from ..permissions import IsBillingStaff


def serialize_bill(b: Bill) -> dict:
    return {
        'id': b.id,
        'patientId': b.patient_id,
        'billDate': b.bill_date.isoformat(),
        'dueDate': b.due_date.isoformat(),
        'services': b.services,
        'totalAmount': str(b.total_amount),
        'paidAmount': str(b.paid_amount),
        'balance': str(b.total_amount - b.paid_amount),
        'status': b.status,
        'displayStatus': billing.display_status(b),
        'createdAt': b.created_at.isoformat() if b.created_at else None,
        'updatedAt': b.updated_at.isoformat() if b.updated_at else None,
    }


def _list(qs, request) -> Response:
    st = request.query_params.get('status')
    if st:
        qs = qs.filter(status=st)
    return Response([serialize_bill(b) for b in qs.order_by('-bill_date', '-id')])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def bills_list(request):
    if request.method == 'GET':
        return _list(Bill.objects.all(), request)
    s = BillSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    bill = billing.create_bill(
        patient=vd['patient'],
        bill_date=vd['bill_date'],
        due_date=vd['due_date'],
        services=vd['services'],
        paid_amount=vd.get('paid_amount', 0),
        status=vd.get('status'),
    )
    log_action(user=request.user, action='bill_create', object_type='bill', object_id=bill.pk,
               detail={'total': str(bill.total_amount)})
    return Response(serialize_bill(bill), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def bill_detail(request, pk: int):
    bill = get_object_or_404(Bill, pk=pk)
    if request.method == 'GET':
        return Response(serialize_bill(bill))
    s = BillSerializer(bill, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    bill = billing.update_bill(bill, s.validated_data)
    log_action(user=request.user, action='bill_update', object_type='bill', object_id=bill.pk,
               detail={'fields': sorted(s.validated_data)})
    return Response(serialize_bill(bill))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def bill_payments(request, pk: int):
    bill = get_object_or_404(Bill, pk=pk)
    s = PaymentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    bill = billing.record_payment(bill, s.validated_data['amount'])
    log_action(user=request.user, action='bill_payment', object_type='bill', object_id=bill.pk,
               detail={'amount': str(s.validated_data['amount']), 'status': bill.status})
    return Response(serialize_bill(bill))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def bills_by_patient(request, patient_id: int):
    patient = get_object_or_404(Patient, pk=patient_id)
    return _list(patient.bills.all(), request)
