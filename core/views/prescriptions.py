from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import InvalidStateTransition
from core.models import Doctor, Patient, Prescription
from core.permissions import IsClinician
from core.serializers.record import PrescriptionSerializer
from core.services.audit import log_action
from core.services.invalidation import invalidate


def serialize_prescription(p: Prescription) -> dict:
    return {
        'id': p.id,
        'patientId': p.patient_id,
        'doctorId': p.doctor_id,
        'doctorName': p.doctor.user.get_full_name() or p.doctor.user.username,
        'prescriptionDate': p.prescription_date.isoformat(),
        'medicines': p.medicines,
        'dosage': p.dosage,
        'duration': p.duration,
        'notes': p.notes,
        'status': p.status,
        'createdAt': p.created_at.isoformat() if p.created_at else None,
        'updatedAt': p.updated_at.isoformat() if p.updated_at else None,
    }


def _qs():
    return Prescription.objects.select_related('doctor__user').order_by('-prescription_date', '-id')


def _cancel(request, prescription: Prescription) -> Prescription:
    if prescription.status == Prescription.STATUS_CANCELLED:
        raise InvalidStateTransition('prescription is already cancelled')
    prescription.status = Prescription.STATUS_CANCELLED
    prescription.save(update_fields=['status', 'updated_at'])
    log_action(user=request.user, action='prescription_cancel', object_type='prescription',
               object_id=prescription.pk)
    invalidate('prescriptions')
    return prescription


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinician])
def prescriptions_list(request):
    if request.method == 'GET':
        qs = _qs()
        st = request.query_params.get('status')
        if st:
            qs = qs.filter(status=st)
        return Response([serialize_prescription(p) for p in qs])
    s = PrescriptionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    prescription = Prescription.objects.create(**s.validated_data)
    log_action(user=request.user, action='prescription_create', object_type='prescription',
               object_id=prescription.pk)
    invalidate('prescriptions')
    return Response(serialize_prescription(prescription), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsClinician])
def prescription_detail(request, pk: int):
    prescription = get_object_or_404(_qs(), pk=pk)
    if request.method == 'GET':
        return Response(serialize_prescription(prescription))
    if request.method == 'PUT':
        s = PrescriptionSerializer(prescription, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        for field, value in s.validated_data.items():
            setattr(prescription, field, value)
        prescription.save()
        log_action(user=request.user, action='prescription_update', object_type='prescription',
                   object_id=prescription.pk, detail={'fields': sorted(s.validated_data)})
        invalidate('prescriptions')
        return Response(serialize_prescription(prescription))
    return Response(serialize_prescription(_cancel(request, prescription)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinician])
def prescription_cancel(request, pk: int):
    prescription = get_object_or_404(_qs(), pk=pk)
    return Response(serialize_prescription(_cancel(request, prescription)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinician])
def prescriptions_by_patient(request, patient_id: int):
    patient = get_object_or_404(Patient, pk=patient_id)
    return Response([serialize_prescription(p) for p in _qs().filter(patient=patient)])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinician])
def prescriptions_by_doctor(request, doctor_id: int):
    doctor = get_object_or_404(Doctor, pk=doctor_id)
    return Response([serialize_prescription(p) for p in _qs().filter(doctor=doctor)])
