"""
Patient chart views.

All staff roles may read charts; administrators and doctors create and
edit them.  Charts are never deleted: ``DELETE`` discharges the patient.
"""
from __future__ import annotations

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.serializers.fields import ListQuerySerializer, paginate
from core.serializers.patient import PatientSerializer
from core.services import patients as patient_service

from ..models import Patient
from ..permissions import ClinicianOrReadOnly, IsClinician


def serialize_patient(p: Patient) -> dict:
    return {
        'id': p.id,
        'firstName': p.first_name,
        'lastName': p.last_name,
        'fullName': p.full_name,
        'dateOfBirth': p.date_of_birth.isoformat(),
        'gender': p.gender,
        'phone': p.phone,
        'email': p.email,
        'address': p.address,
        'emergencyContact': p.emergency_contact,
        'bloodGroup': p.blood_group,
        'status': p.status,
        'userId': p.user_id,
        'createdAt': p.created_at.isoformat() if p.created_at else None,
        'updatedAt': p.updated_at.isoformat() if p.updated_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ClinicianOrReadOnly])
def patients_list(request):
    if request.method == 'GET':
        q = ListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = patient_service.search_patients(
            q=(q.validated_data.get('q') or '').strip() or None,
            status=q.validated_data.get('status') or None,
        )
        return Response([serialize_patient(p) for p in paginate(qs, q.validated_data)])
    s = PatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = patient_service.create_patient(s.validated_data, operator=request.user)
    return Response(serialize_patient(patient), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, ClinicianOrReadOnly])
def patient_detail(request, pk: int):
    patient = get_object_or_404(Patient, pk=pk)
    if request.method == 'GET':
        return Response(serialize_patient(patient))
    if request.method == 'PUT':
        s = PatientSerializer(patient, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        patient = patient_service.update_patient(patient, s.validated_data, operator=request.user)
        return Response(serialize_patient(patient))
    # DELETE discharges
    patient = patient_service.discharge_patient(patient, operator=request.user)
    return Response(serialize_patient(patient))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinician])
def patient_discharge(request, pk: int):
    patient = get_object_or_404(Patient, pk=pk)
    patient = patient_service.discharge_patient(patient, operator=request.user)
    return Response(serialize_patient(patient))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinician])
def export_patients(request):
    """Download the patient list as CSV, honouring the ``q`` and ``status`` filters."""
    q = ListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = patient_service.search_patients(
        q=(q.validated_data.get('q') or '').strip() or None,
        status=q.validated_data.get('status') or None,
    )
    body = patient_service.export_csv(qs)
    filename = f"patients-{timezone.localdate().isoformat()}.csv"
    response = HttpResponse(body, content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response
