"""
Dashboard counters.

``dashboard_stats`` runs four independent COUNT queries and caches the
result per day.  The cached entry is registered with the invalidation
layer so writes to patients, appointments, doctors or rooms drop it
straight away instead of waiting for the TTL.
"""
from __future__ import annotations

import datetime
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from core.models import Appointment, Doctor, Patient, Room

from .appointments import appointments_on
from .invalidation import register_cache_keys

STATS_KEY = 'dashboard:stats:{date}'
APPOINTMENT_STATS_KEY = 'dashboard:appointment-stats:{date}'


def _dashboard_keys():
    today = timezone.localdate()
    return [STATS_KEY.format(date=today.isoformat()),
            APPOINTMENT_STATS_KEY.format(date=today.isoformat())]


for _resource in ('dashboard', 'patients', 'appointments', 'doctors', 'rooms'):
    register_cache_keys(_resource, _dashboard_keys)


def _ttl() -> int:
    return int(getattr(settings, 'DASHBOARD_CACHE_TTL', 60) or 0)


def compute_stats(today: datetime.date) -> dict:
    return {
        'totalPatients': Patient.objects.count(),
        'todayAppointments': appointments_on(today, include_cancelled=False).count(),
        'availableDoctors': Doctor.objects.filter(status=Doctor.STATUS_AVAILABLE).count(),
        'availableRooms': Room.objects.filter(occupied=False).count(),
    }


def dashboard_stats(today: Optional[datetime.date] = None) -> dict:
    today = today or timezone.localdate()
    ttl = _ttl()
    if ttl <= 0:
        return compute_stats(today)
    key = STATS_KEY.format(date=today.isoformat())
    cached = cache.get(key)
    if cached is not None:
        return cached
    stats = compute_stats(today)
    cache.set(key, stats, ttl)
    return stats


def appointment_stats(today: Optional[datetime.date] = None) -> dict:
    """Count today's appointments per status."""
    today = today or timezone.localdate()
    ttl = _ttl()
    key = APPOINTMENT_STATS_KEY.format(date=today.isoformat())
    if ttl > 0:
        cached = cache.get(key)
        if cached is not None:
            return cached
    counts = {status: 0 for status, _ in Appointment.STATUS_CHOICES}
    for row in Appointment.objects.filter(date=today).values_list('status', flat=True):
        counts[row] = counts.get(row, 0) + 1
    result = {'date': today.isoformat(), 'total': sum(counts.values()), 'byStatus': counts}
    if ttl > 0:
        cache.set(key, result, ttl)
    return result


def upcoming_appointments(limit: int = 5, *, today: Optional[datetime.date] = None):
    today = today or timezone.localdate()
    return (Appointment.objects
            .filter(date__gte=today, status=Appointment.STATUS_SCHEDULED)
            .select_related('patient', 'doctor__user')
            .order_by('date', 'time')[:limit])


def recent_patients(limit: int = 5):
    return Patient.objects.order_by('-created_at', '-id')[:limit]


def warm(today: Optional[datetime.date] = None) -> dict:
    """Recompute and store today's counters regardless of what is cached."""
    today = today or timezone.localdate()
    cache.delete_many([STATS_KEY.format(date=today.isoformat()),
                       APPOINTMENT_STATS_KEY.format(date=today.isoformat())])
    return {'stats': dashboard_stats(today), 'appointments': appointment_stats(today)}
