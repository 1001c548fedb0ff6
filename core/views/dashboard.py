"""
Dashboard endpoints.

Counts and short lists shown on the staff landing page.  The headline
counters are cached per day and dropped whenever patients, appointments,
doctors or rooms change.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffRole
from ..services import dashboard
from .appointments import serialize_appointment
from .patients import serialize_patient


def _limit(request, default: int = 5) -> int:
    try:
        return max(1, min(int(request.query_params.get('limit', default)), 50))
    except (TypeError, ValueError):
        return default


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def dashboard_stats(request):
    """Return ``totalPatients``, ``todayAppointments``, ``availableDoctors``
    and ``availableRooms``.  Cancelled appointments are not counted."""
    return Response(dashboard.dashboard_stats())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_stats(request):
    return Response(dashboard.appointment_stats())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def upcoming_appointments(request):
    items = dashboard.upcoming_appointments(_limit(request))
    return Response([serialize_appointment(a) for a in items])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def recent_patients(request):
    return Response([serialize_patient(p) for p in dashboard.recent_patients(_limit(request))])
