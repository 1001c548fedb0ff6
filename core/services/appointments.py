"""
Appointment status machine.

``scheduled`` is the only non-terminal state.  From it an appointment
can be ``completed`` or ``cancelled``; nothing leaves a terminal state.
Deleting an appointment through the API is a cancellation.
"""
from __future__ import annotations

import datetime
import logging
from typing import Any, Mapping, Optional

from django.db import transaction

from core.exceptions import InvalidStateTransition
from core.models import Appointment, AppointmentTransition

from .audit import log_action
from .invalidation import invalidate

logger = logging.getLogger(__name__)

TRANSITIONS = {
    Appointment.STATUS_SCHEDULED: {Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELLED},
    Appointment.STATUS_COMPLETED: set(),
    Appointment.STATUS_CANCELLED: set(),
}

# Fields that move the visit itself; only editable while still scheduled
SCHEDULE_FIELDS = ('patient', 'doctor', 'date', 'time')


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, set())


def is_terminal(status: str) -> bool:
    return not TRANSITIONS.get(status)


def transition_appointment(appointment: Appointment, new_status: str, *, operator=None,
                           reason: str = '') -> Appointment:
    """Move ``appointment`` to ``new_status`` and record the transition.

    The row is locked so two concurrent requests cannot both leave
    ``scheduled``.  Raises :class:`InvalidStateTransition` for any move
    not listed in :data:`TRANSITIONS`.
    """
    with transaction.atomic():
        locked = Appointment.objects.select_for_update().get(pk=appointment.pk)
        old_status = locked.status
        if not can_transition(old_status, new_status):
            raise InvalidStateTransition(f'cannot change appointment from {old_status} to {new_status}')
        locked.status = new_status
        locked.save(update_fields=['status', 'updated_at'])
        AppointmentTransition.objects.create(
            appointment=locked,
            from_status=old_status,
            to_status=new_status,
            operator=operator,
            reason=reason or '',
        )
        log_action(user=operator, action=f'appointment_{new_status}', object_type='appointment',
                   object_id=locked.pk, detail={'from': old_status, 'to': new_status, 'reason': reason})
    logger.info('appointment %s: %s -> %s', locked.pk, old_status, new_status)
    invalidate('appointments', 'dashboard')
    return locked


def cancel_appointment(appointment: Appointment, *, operator=None, reason: str = '') -> Appointment:
    return transition_appointment(appointment, Appointment.STATUS_CANCELLED, operator=operator, reason=reason)


def complete_appointment(appointment: Appointment, *, operator=None, reason: str = '') -> Appointment:
    return transition_appointment(appointment, Appointment.STATUS_COMPLETED, operator=operator, reason=reason)


def create_appointment(data: Mapping[str, Any], *, operator=None) -> Appointment:
    status = data.get('status') or Appointment.STATUS_SCHEDULED
    if status != Appointment.STATUS_SCHEDULED:
        raise InvalidStateTransition('new appointments start as scheduled')
    fields = {k: v for k, v in data.items() if k != 'status'}
    appointment = Appointment.objects.create(status=Appointment.STATUS_SCHEDULED, **fields)
    log_action(user=operator, action='appointment_create', object_type='appointment', object_id=appointment.pk)
    logger.info('appointment %s scheduled for %s %s', appointment.pk, appointment.date, appointment.time)
    invalidate('appointments', 'dashboard')
    return appointment


def update_appointment(appointment: Appointment, changes: Mapping[str, Any], *, operator=None,
                       reason: str = '') -> Appointment:
    """Apply field edits, routing any status change through the state machine.

    Moving the visit (patient, doctor, date or time) is rejected once
    the appointment has reached a terminal state; reason and notes stay
    editable.
    """
    changes = dict(changes)
    new_status = changes.pop('status', None)
    with transaction.atomic():
        locked = Appointment.objects.select_for_update().get(pk=appointment.pk)
        moving = [f for f in SCHEDULE_FIELDS if f in changes and changes[f] != getattr(locked, f)]
        if moving and is_terminal(locked.status):
            raise InvalidStateTransition(f'cannot reschedule a {locked.status} appointment')
        # a rejected status change must not leave the field edits behind
        if new_status and new_status != locked.status and not can_transition(locked.status, new_status):
            raise InvalidStateTransition(f'cannot change appointment from {locked.status} to {new_status}')
        if changes:
            for field, value in changes.items():
                setattr(locked, field, value)
            locked.save()
            log_action(user=operator, action='appointment_update', object_type='appointment',
                       object_id=locked.pk, detail={'fields': sorted(changes)})
            invalidate('appointments', 'dashboard')
        if new_status and new_status != locked.status:
            locked = transition_appointment(locked, new_status, operator=operator, reason=reason)
    return locked


def reschedule_appointment(appointment: Appointment, *, date: datetime.date, time: datetime.time,
                           doctor=None, operator=None) -> Appointment:
    changes: dict[str, Any] = {'date': date, 'time': time}
    if doctor is not None:
        changes['doctor'] = doctor
    if is_terminal(appointment.status):
        raise InvalidStateTransition(f'cannot reschedule a {appointment.status} appointment')
    return update_appointment(appointment, changes, operator=operator)


def history(appointment: Appointment) -> list[dict]:
    return [
        {
            'from': t.from_status,
            'to': t.to_status,
            'operator': t.operator.username if t.operator else '',
            'timestamp': t.timestamp.strftime('%Y-%m-%d %H:%M'),
            'reason': t.reason,
        }
        for t in appointment.transitions.select_related('operator').order_by('timestamp', 'id')
    ]


def appointments_on(date: datetime.date, *, include_cancelled: bool = True):
    qs = Appointment.objects.select_related('patient', 'doctor__user').filter(date=date)
    if not include_cancelled:
        qs = qs.exclude(status=Appointment.STATUS_CANCELLED)
    return qs


def next_status_options(status: str) -> list[str]:
    return sorted(TRANSITIONS.get(status, set()))


def get_reason(data: Mapping[str, Any], default: Optional[str] = None) -> str:
    return (data.get('reason') or default or '').strip()
