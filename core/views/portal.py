"""
Patient portal.

Read-only endpoints for users with the patient role.  Every query is
scoped to the chart linked to the requesting account, so a patient can
never see another patient's data.  An account without a linked chart
gets 404.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Patient, Prescription
from ..permissions import IsPatientRole
from .appointments import serialize_appointment
from .bills import serialize_bill
from .medical_records import serialize_record
from .patients import serialize_patient
from .prescriptions import serialize_prescription


def _own_patient(request) -> Patient:
    patient = Patient.objects.filter(user=request.user).first()
    if patient is None:
        raise NotFound('no patient record is linked to this account')
    return patient


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def portal_profile(request):
    return Response(serialize_patient(_own_patient(request)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def portal_appointments(request):
    patient = _own_patient(request)
    qs = patient.appointments.select_related('patient', 'doctor__user').order_by('-date', '-time')
    return Response([serialize_appointment(a) for a in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def portal_medical_records(request):
    patient = _own_patient(request)
    qs = patient.medical_records.filter(archived=False).order_by('-visit_date', '-id')
    return Response([serialize_record(r) for r in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def portal_prescriptions(request):
    patient = _own_patient(request)
    qs = Prescription.objects.filter(patient=patient).select_related('doctor__user')
    return Response([serialize_prescription(p) for p in qs.order_by('-prescription_date', '-id')])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def portal_bills(request):
    patient = _own_patient(request)
    return Response([serialize_bill(b) for b in patient.bills.order_by('-bill_date', '-id')])
