import logging
from typing import Optional

from django.db.models import Q
from rest_framework.exceptions import ValidationError

from core.models import Doctor, User

from .audit import log_action
from .invalidation import invalidate

logger = logging.getLogger(__name__)


def list_doctors(*, q: Optional[str] = None, specialization: Optional[str] = None,
                 status: Optional[str] = None):
    qs = Doctor.objects.select_related('user')
    if q:
        qs = qs.filter(Q(user__full_name__icontains=q) | Q(user__username__icontains=q)
                       | Q(specialization__icontains=q))
    if specialization:
        qs = qs.filter(specialization__iexact=specialization)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('id')


def specializations() -> list[str]:
    values = Doctor.objects.values_list('specialization', flat=True).distinct()
    return sorted({v for v in values if v})


def _check_user(user: User, *, exclude_pk=None) -> None:
    if user.role != User.ROLE_DOCTOR:
        raise ValidationError({'userId': ['user must hold the doctor role']})
    others = Doctor.objects.filter(user=user)
    if exclude_pk is not None:
        others = others.exclude(pk=exclude_pk)
    if others.exists():
        raise ValidationError({'userId': ['user already has a doctor profile']})


def create_doctor(data: dict, *, operator=None) -> Doctor:
    _check_user(data['user'])
    doctor = Doctor.objects.create(**data)
    log_action(user=operator, action='doctor_create', object_type='doctor', object_id=doctor.pk)
    logger.info('doctor profile %s created for user %s', doctor.pk, doctor.user_id)
    invalidate('doctors')
    return doctor


def update_doctor(doctor: Doctor, changes: dict, *, operator=None) -> Doctor:
    if 'user' in changes and changes['user'].pk != doctor.user_id:
        _check_user(changes['user'], exclude_pk=doctor.pk)
    for field, value in changes.items():
        setattr(doctor, field, value)
    doctor.save()
    log_action(user=operator, action='doctor_update', object_type='doctor', object_id=doctor.pk,
               detail={'fields': sorted(changes)})
    invalidate('doctors')
    return doctor


def deactivate_doctor(doctor: Doctor, *, operator=None) -> Doctor:
    """Mark a doctor unavailable.  Profiles are kept for appointment history."""
    doctor.status = Doctor.STATUS_UNAVAILABLE
    doctor.save(update_fields=['status', 'updated_at'])
    log_action(user=operator, action='doctor_deactivate', object_type='doctor', object_id=doctor.pk)
    logger.info('doctor %s deactivated', doctor.pk)
    invalidate('doctors')
    return doctor
