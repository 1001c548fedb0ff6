import csv
import io
import logging
from typing import Iterable, Optional

from django.db.models import Q

from core.models import Patient

from .audit import log_action
from .invalidation import invalidate

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    ('id', 'ID'),
    ('first_name', 'First name'),
    ('last_name', 'Last name'),
    ('date_of_birth', 'Date of birth'),
    ('gender', 'Gender'),
    ('phone', 'Phone'),
    ('email', 'Email'),
    ('blood_group', 'Blood group'),
    ('status', 'Status'),
]


def search_patients(*, q: Optional[str] = None, status: Optional[str] = None):
    qs = Patient.objects.all()
    if q:
        qs = qs.filter(Q(first_name__icontains=q) | Q(last_name__icontains=q)
                       | Q(phone__icontains=q) | Q(email__icontains=q))
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-created_at', '-id')


def create_patient(data: dict, *, operator=None) -> Patient:
    patient = Patient.objects.create(**data)
    log_action(user=operator, action='patient_create', object_type='patient', object_id=patient.pk)
    logger.info('patient %s registered', patient.pk)
    invalidate('patients')
    return patient


def update_patient(patient: Patient, changes: dict, *, operator=None) -> Patient:
    for field, value in changes.items():
        setattr(patient, field, value)
    patient.save()
    log_action(user=operator, action='patient_update', object_type='patient', object_id=patient.pk,
               detail={'fields': sorted(changes)})
    invalidate('patients')
    return patient


def discharge_patient(patient: Patient, *, operator=None) -> Patient:
    patient.status = Patient.STATUS_DISCHARGED
    patient.save(update_fields=['status', 'updated_at'])
    log_action(user=operator, action='patient_discharge', object_type='patient', object_id=patient.pk)
    logger.info('patient %s discharged', patient.pk)
    invalidate('patients')
    return patient


def export_csv(patients: Iterable[Patient]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([label for _, label in EXPORT_COLUMNS])
    for p in patients:
        row = []
        for field, _ in EXPORT_COLUMNS:
            value = getattr(p, field)
            row.append(value.isoformat() if hasattr(value, 'isoformat') else value)
        writer.writerow(row)
    return buf.getvalue()
