"""
Ward and room occupancy.

A ward holds ``0 <= occupied_beds <= capacity`` at all times and a room
is ``occupied`` exactly when it has a patient.  Both rules are checked
here before writes and again by database check constraints.  The ward
``status`` is set by operators; :func:`occupancy_rate` and
:func:`is_full` are derived for responses only.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from core.exceptions import OccupancyViolation, ResourceInUse
from core.models import Patient, Room, Ward

from .audit import log_action
from .invalidation import invalidate

logger = logging.getLogger(__name__)


def validate_occupancy(capacity: int, occupied: int) -> None:
    if capacity is None or capacity < 1:
        raise OccupancyViolation('capacity must be at least 1')
    if occupied < 0:
        raise OccupancyViolation('occupied beds cannot be negative')
    if occupied > capacity:
        raise OccupancyViolation(f'occupied beds ({occupied}) exceed capacity ({capacity})')


def occupancy_rate(ward: Ward) -> float:
    if not ward.capacity:
        return 0.0
    return round(ward.occupied_beds / ward.capacity, 4)


def is_full(ward: Ward) -> bool:
    return ward.occupied_beds >= ward.capacity


def _adjust_beds(ward: Ward, delta: int, *, user=None) -> Ward:
    with transaction.atomic():
        locked = Ward.objects.select_for_update().get(pk=ward.pk)
        if delta > 0 and locked.status == Ward.STATUS_MAINTENANCE:
            raise OccupancyViolation(f'ward {locked.ward_number} is under maintenance')
        occupied = locked.occupied_beds + delta
        validate_occupancy(locked.capacity, occupied)
        locked.occupied_beds = occupied
        locked.save(update_fields=['occupied_beds', 'updated_at'])
        log_action(user=user, action='ward_admit' if delta > 0 else 'ward_release', object_type='ward',
                   object_id=locked.pk, detail={'beds': abs(delta), 'occupied': occupied})
    logger.info('ward %s occupancy %s/%s', locked.ward_number, locked.occupied_beds, locked.capacity)
    invalidate('wards')
    return locked


def admit_to_ward(ward: Ward, beds: int = 1, *, user=None) -> Ward:
    """Take ``beds`` beds in ``ward``; rejects overflow and wards under maintenance."""
    if beds < 1:
        raise OccupancyViolation('beds must be a positive number')
    return _adjust_beds(ward, beds, user=user)


def release_from_ward(ward: Ward, beds: int = 1, *, user=None) -> Ward:
    if beds < 1:
        raise OccupancyViolation('beds must be a positive number')
    return _adjust_beds(ward, -beds, user=user)


def deactivate_ward(ward: Ward, *, user=None) -> Ward:
    """Take a ward out of service.

    A ward that still has rooms cannot be deactivated; its rooms must be
    moved or removed first.
    """
    with transaction.atomic():
        locked = Ward.objects.select_for_update().get(pk=ward.pk)
        rooms = locked.rooms.count()
        if rooms:
            raise ResourceInUse(f'ward {locked.ward_number} still has {rooms} room(s)')
        locked.status = Ward.STATUS_MAINTENANCE
        locked.save(update_fields=['status', 'updated_at'])
        log_action(user=user, action='ward_deactivate', object_type='ward', object_id=locked.pk)
    logger.info('ward %s set to maintenance', locked.ward_number)
    invalidate('wards')
    return locked


def update_ward(ward: Ward, changes: dict, *, user=None) -> Ward:
    """Apply field edits to a ward.

    Moving a ward to ``maintenance`` follows the same rule as
    :func:`deactivate_ward`: rejected while rooms still reference it.
    """
    with transaction.atomic():
        locked = Ward.objects.select_for_update().get(pk=ward.pk)
        entering_maintenance = (changes.get('status') == Ward.STATUS_MAINTENANCE
                                and locked.status != Ward.STATUS_MAINTENANCE)
        if entering_maintenance and locked.rooms.exists():
            raise ResourceInUse(f'ward {locked.ward_number} still has {locked.rooms.count()} room(s)')
        for field, value in changes.items():
            setattr(locked, field, value)
        validate_occupancy(locked.capacity, locked.occupied_beds)
        locked.save()
        log_action(user=user, action='ward_update', object_type='ward', object_id=locked.pk,
                   detail={'fields': sorted(changes)})
    invalidate('wards')
    return locked


def check_room_consistency(occupied: bool, patient: Optional[Patient]) -> None:
    if occupied and patient is None:
        raise OccupancyViolation('an occupied room must name its patient')
    if not occupied and patient is not None:
        raise OccupancyViolation('a room with a patient must be marked occupied')


def assign_room(room: Room, patient: Patient, *, user=None) -> Room:
    with transaction.atomic():
        locked = Room.objects.select_for_update().get(pk=room.pk)
        if locked.occupied:
            raise OccupancyViolation(f'room {locked.room_number} is already occupied')
        locked.patient = patient
        locked.occupied = True
        locked.save(update_fields=['patient', 'occupied', 'updated_at'])
        log_action(user=user, action='room_assign', object_type='room', object_id=locked.pk,
                   detail={'patient': patient.pk})
    logger.info('room %s assigned to patient %s', locked.room_number, patient.pk)
    invalidate('rooms', 'dashboard')
    return locked


def release_room(room: Room, *, user=None) -> Room:
    with transaction.atomic():
        locked = Room.objects.select_for_update().get(pk=room.pk)
        if not locked.occupied:
            raise OccupancyViolation(f'room {locked.room_number} is not occupied')
        previous = locked.patient_id
        locked.patient = None
        locked.occupied = False
        locked.save(update_fields=['patient', 'occupied', 'updated_at'])
        log_action(user=user, action='room_release', object_type='room', object_id=locked.pk,
                   detail={'patient': previous})
    logger.info('room %s released (patient %s)', locked.room_number, previous)
    invalidate('rooms', 'dashboard')
    return locked


def delete_room(room: Room, *, user=None) -> None:
    with transaction.atomic():
        locked = Room.objects.select_for_update().get(pk=room.pk)
        if locked.occupied:
            raise ResourceInUse(f'room {locked.room_number} is occupied')
        pk, number = locked.pk, locked.room_number
        locked.delete()
        log_action(user=user, action='room_delete', object_type='room', object_id=pk,
                   detail={'roomNumber': number})
    logger.info('room %s deleted', number)
    invalidate('rooms', 'dashboard')
