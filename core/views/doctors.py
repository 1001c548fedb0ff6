from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import Doctor
from core.permissions import AdminOrReadOnly, IsAdminRole, IsStaffRole
from core.serializers.doctor import DoctorListQuerySerializer, DoctorSerializer
from core.serializers.fields import paginate
from core.services import doctors as doctor_service


def serialize_doctor(d: Doctor) -> dict:
    return {
        'id': d.id,
        'userId': d.user_id,
        'name': d.user.get_full_name() or d.user.username,
        'email': d.user.email,
        'specialization': d.specialization,
        'qualification': d.qualification,
        'experience': d.experience,
        'phone': d.phone,
        'status': d.status,
        'createdAt': d.created_at.isoformat() if d.created_at else None,
        'updatedAt': d.updated_at.isoformat() if d.updated_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AdminOrReadOnly])
def doctors_list(request):
    """List doctors or create a profile for a user holding the doctor role.

    Query params: ``q`` (name, username or specialization contains),
    ``specialization``, ``status``, ``page`` and ``pageSize``.
    """
    if request.method == 'GET':
        q = DoctorListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        vd = q.validated_data
        qs = doctor_service.list_doctors(
            q=(vd.get('q') or '').strip() or None,
            specialization=vd.get('specialization') or None,
            status=vd.get('status'),
        )
        return Response([serialize_doctor(d) for d in paginate(qs, vd)])
    s = DoctorSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = doctor_service.create_doctor(s.validated_data, operator=request.user)
    return Response(serialize_doctor(doctor), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, AdminOrReadOnly])
def doctor_detail(request, pk: int):
    doctor = get_object_or_404(Doctor.objects.select_related('user'), pk=pk)
    if request.method == 'GET':
        return Response(serialize_doctor(doctor))
    if request.method == 'PUT':
        s = DoctorSerializer(doctor, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        doctor = doctor_service.update_doctor(doctor, s.validated_data, operator=request.user)
        return Response(serialize_doctor(doctor))
    doctor = doctor_service.deactivate_doctor(doctor, operator=request.user)
    return Response(serialize_doctor(doctor))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def doctor_deactivate(request, pk: int):
    doctor = get_object_or_404(Doctor.objects.select_related('user'), pk=pk)
    doctor = doctor_service.deactivate_doctor(doctor, operator=request.user)
    return Response(serialize_doctor(doctor))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def specializations(request):
    return Response(doctor_service.specializations())
