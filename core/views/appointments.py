"""
Appointment endpoints.

Status changes go through :mod:`core.services.appointments`: an
appointment leaves ``scheduled`` exactly once, to ``completed`` or
``cancelled``.  ``DELETE`` cancels, so history is never lost.
"""
from __future__ import annotations

import datetime

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.serializers.appointment import AppointmentSerializer, RescheduleSerializer, TransitionSerializer
from core.services import appointments as appointment_service

from ..models import Appointment, Doctor, Patient
from ..permissions import IsStaffRole


def serialize_appointment(a: Appointment) -> dict:
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'patientName': a.patient.full_name,
        'doctorId': a.doctor_id,
        'doctorName': a.doctor.user.get_full_name() or a.doctor.user.username,
        'date': a.date.isoformat(),
        'time': a.time.strftime('%H:%M'),
        'status': a.status,
        'reason': a.reason,
        'notes': a.notes,
        'nextStatuses': appointment_service.next_status_options(a.status),
        'createdAt': a.created_at.isoformat() if a.created_at else None,
        'updatedAt': a.updated_at.isoformat() if a.updated_at else None,
    }


def _base_qs():
    return Appointment.objects.select_related('patient', 'doctor__user')


def _get(pk: int) -> Appointment:
    return get_object_or_404(_base_qs(), pk=pk)


def _list(qs, request) -> Response:
    st = request.query_params.get('status')
    if st:
        qs = qs.filter(status=st)
    return Response([serialize_appointment(a) for a in qs.order_by('date', 'time', 'id')])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointments_list(request):
    if request.method == 'GET':
        return _list(_base_qs(), request)
    s = AppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = appointment_service.create_appointment(s.validated_data, operator=request.user)
    return Response(serialize_appointment(_get(appointment.pk)), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_detail(request, pk: int):
    appointment = _get(pk)
    if request.method == 'GET':
        return Response(serialize_appointment(appointment))
    if request.method == 'PUT':
        s = AppointmentSerializer(appointment, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        reason = (request.data.get('transitionReason') or '').strip()
        appointment_service.update_appointment(appointment, s.validated_data,
                                               operator=request.user, reason=reason)
        return Response(serialize_appointment(_get(pk)))
    appointment_service.cancel_appointment(appointment, operator=request.user,
                                           reason=appointment_service.get_reason(request.data))
    return Response(serialize_appointment(_get(pk)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_cancel(request, pk: int):
    appointment = _get(pk)
    s = TransitionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment_service.cancel_appointment(appointment, operator=request.user,
                                           reason=s.validated_data.get('reason', ''))
    return Response(serialize_appointment(_get(pk)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_complete(request, pk: int):
    appointment = _get(pk)
    s = TransitionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment_service.complete_appointment(appointment, operator=request.user,
                                             reason=s.validated_data.get('reason', ''))
    return Response(serialize_appointment(_get(pk)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_reschedule(request, pk: int):
    appointment = _get(pk)
    s = RescheduleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    appointment_service.reschedule_appointment(
        appointment, date=vd['date'], time=vd['time'], doctor=vd.get('doctor'), operator=request.user,
    )
    return Response(serialize_appointment(_get(pk)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_history(request, pk: int):
    appointment = _get(pk)
    return Response({
        'id': appointment.id,
        'status': appointment.status,
        'transitionHistory': appointment_service.history(appointment),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointments_by_patient(request, patient_id: int):
    patient = get_object_or_404(Patient, pk=patient_id)
    return _list(_base_qs().filter(patient=patient), request)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointments_by_doctor(request, doctor_id: int):
    doctor = get_object_or_404(Doctor, pk=doctor_id)
    return _list(_base_qs().filter(doctor=doctor), request)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointments_by_date(request, day: str):
    try:
        date = datetime.date.fromisoformat(day)
    except ValueError:
        raise ValidationError({'date': 'expected YYYY-MM-DD'})
    return _list(appointment_service.appointments_on(date), request)
