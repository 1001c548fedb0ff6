"""
Ward and room endpoints.

Every staff role can read; administrators manage wards and rooms.
Occupancy limits are checked in the serializers and the occupancy
service, and backed by database check constraints.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.serializers.ward import AssignRoomSerializer, BedsSerializer, RoomSerializer, WardSerializer
from core.services import occupancy
from core.services.audit import log_action
from core.services.invalidation import invalidate

from ..models import Room, Ward
from ..permissions import AdminOrReadOnly, IsAdminRole


def serialize_ward(w: Ward) -> dict:
    return {
        'id': w.id,
        'wardNumber': w.ward_number,
        'wardType': w.ward_type,
        'capacity': w.capacity,
        'occupiedBeds': w.occupied_beds,
        'availableBeds': w.capacity - w.occupied_beds,
        'occupancyRate': occupancy.occupancy_rate(w),
        'isFull': occupancy.is_full(w),
        'floor': w.floor,
        'status': w.status,
        'createdAt': w.created_at.isoformat() if w.created_at else None,
        'updatedAt': w.updated_at.isoformat() if w.updated_at else None,
    }


def serialize_room(r: Room) -> dict:
    return {
        'id': r.id,
        'wardId': r.ward_id,
        'roomNumber': r.room_number,
        'roomType': r.room_type,
        'occupied': r.occupied,
        'patientId': r.patient_id,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
        'updatedAt': r.updated_at.isoformat() if r.updated_at else None,
    }


# ---------------------------------------------------------------------
# Wards
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AdminOrReadOnly])
def wards_list(request):
    if request.method == 'GET':
        qs = Ward.objects.order_by('floor', 'ward_number')
        st = request.query_params.get('status')
        if st:
            qs = qs.filter(status=st)
        return Response([serialize_ward(w) for w in qs])
    s = WardSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    ward = Ward.objects.create(**s.validated_data)
    log_action(user=request.user, action='ward_create', object_type='ward', object_id=ward.pk)
    invalidate('wards')
    return Response(serialize_ward(ward), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, AdminOrReadOnly])
def ward_detail(request, pk: int):
    ward = get_object_or_404(Ward, pk=pk)
    if request.method == 'GET':
        return Response(serialize_ward(ward))
    if request.method == 'PUT':
        s = WardSerializer(ward, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        return Response(serialize_ward(occupancy.update_ward(ward, s.validated_data, user=request.user)))
    return Response(serialize_ward(occupancy.deactivate_ward(ward, user=request.user)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def ward_deactivate(request, pk: int):
    ward = get_object_or_404(Ward, pk=pk)
    return Response(serialize_ward(occupancy.deactivate_ward(ward, user=request.user)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def ward_admit(request, pk: int):
    ward = get_object_or_404(Ward, pk=pk)
    s = BedsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    ward = occupancy.admit_to_ward(ward, s.validated_data['beds'], user=request.user)
    return Response(serialize_ward(ward))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def ward_release(request, pk: int):
    ward = get_object_or_404(Ward, pk=pk)
    s = BedsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    ward = occupancy.release_from_ward(ward, s.validated_data['beds'], user=request.user)
    return Response(serialize_ward(ward))


# ---------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AdminOrReadOnly])
def rooms_list(request):
    if request.method == 'GET':
        qs = Room.objects.order_by('room_number')
        occupied = request.query_params.get('occupied')
        if occupied in ('true', '1'):
            qs = qs.filter(occupied=True)
        elif occupied in ('false', '0'):
            qs = qs.filter(occupied=False)
        return Response([serialize_room(r) for r in qs])
    s = RoomSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = Room.objects.create(**s.validated_data)
    log_action(user=request.user, action='room_create', object_type='room', object_id=room.pk)
    invalidate('rooms')
    return Response(serialize_room(room), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, AdminOrReadOnly])
def room_detail(request, pk: int):
    room = get_object_or_404(Room, pk=pk)
    if request.method == 'GET':
        return Response(serialize_room(room))
    if request.method == 'PUT':
        s = RoomSerializer(room, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        for field, value in s.validated_data.items():
            setattr(room, field, value)
        room.save()
        log_action(user=request.user, action='room_update', object_type='room', object_id=room.pk,
                   detail={'fields': sorted(s.validated_data)})
        invalidate('rooms')
        return Response(serialize_room(room))
    occupancy.delete_room(room, user=request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, AdminOrReadOnly])
def rooms_by_ward(request, ward_id: int):
    ward = get_object_or_404(Ward, pk=ward_id)
    return Response([serialize_room(r) for r in ward.rooms.order_by('room_number')])


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def room_assign(request, pk: int):
    room = get_object_or_404(Room, pk=pk)
    s = AssignRoomSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = occupancy.assign_room(room, s.validated_data['patient'], user=request.user)
    return Response(serialize_room(room))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def room_release(request, pk: int):
    room = get_object_or_404(Room, pk=pk)
    return Response(serialize_room(occupancy.release_room(room, user=request.user)))
