from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import MedicalRecord, Patient
from core.permissions import IsClinician
from core.serializers.record import MedicalRecordSerializer
from core.services.audit import log_action
from core.services.invalidation import invalidate


def serialize_record(r: MedicalRecord) -> dict:
    return {
        'id': r.id,
        'patientId': r.patient_id,
        'diagnosis': r.diagnosis,
        'treatment': r.treatment,
        'visitDate': r.visit_date.isoformat(),
        'notes': r.notes,
        'attachments': r.attachments or [],
        'archived': r.archived,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
        'updatedAt': r.updated_at.isoformat() if r.updated_at else None,
    }


def _visible(request, qs):
    # archived records stay hidden unless asked for
    if request.query_params.get('includeArchived') in ('1', 'true', 'True'):
        return qs
    return qs.filter(archived=False)


def _archive(request, record: MedicalRecord) -> MedicalRecord:
    record.archived = True
    record.save(update_fields=['archived', 'updated_at'])
    log_action(user=request.user, action='record_archive', object_type='medical_record', object_id=record.pk)
    invalidate('medical-records')
    return record


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinician])
def records_list(request):
    if request.method == 'GET':
        qs = _visible(request, MedicalRecord.objects.all()).order_by('-visit_date', '-id')
        return Response([serialize_record(r) for r in qs])
    s = MedicalRecordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = MedicalRecord.objects.create(**s.validated_data)
    log_action(user=request.user, action='record_create', object_type='medical_record', object_id=record.pk)
    invalidate('medical-records')
    return Response(serialize_record(record), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsClinician])
def record_detail(request, pk: int):
    record = get_object_or_404(MedicalRecord, pk=pk)
    if request.method == 'GET':
        return Response(serialize_record(record))
    if request.method == 'PUT':
        s = MedicalRecordSerializer(record, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        for field, value in s.validated_data.items():
            setattr(record, field, value)
        record.save()
        log_action(user=request.user, action='record_update', object_type='medical_record',
                   object_id=record.pk, detail={'fields': sorted(s.validated_data)})
        invalidate('medical-records')
        return Response(serialize_record(record))
    return Response(serialize_record(_archive(request, record)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinician])
def record_archive(request, pk: int):
    record = get_object_or_404(MedicalRecord, pk=pk)
    return Response(serialize_record(_archive(request, record)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinician])
def records_by_patient(request, patient_id: int):
    patient = get_object_or_404(Patient, pk=patient_id)
    qs = _visible(request, patient.medical_records.all()).order_by('-visit_date', '-id')
    return Response([serialize_record(r) for r in qs])
