"""
Database models for the hospital management backend.

These models capture the entities the front end manages: users and
their roles, doctors, patients, appointments, medical records,
prescriptions, wards, rooms and bills.  Field names follow Django
conventions; the views translate them to the camelCase keys the
browser client expects.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models


class User(AbstractUser):
    """Custom user model carrying a role and a display name.

    Roles mirror the front-end roles: 'admin', 'doctor', 'staff' and
    'patient'.  Users are never hard-deleted; deactivate them with
    ``is_active`` instead.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_STAFF = 'staff'
    ROLE_PATIENT = 'patient'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_PATIENT, 'Patient'),
    ]
    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_STAFF, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def get_full_name(self) -> str:
        return self.full_name or super().get_full_name()

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    """Professional profile of a user holding the doctor role."""
    STATUS_AVAILABLE = 'available'
    STATUS_UNAVAILABLE = 'unavailable'
    STATUS_ON_LEAVE = 'on-leave'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_UNAVAILABLE, 'Unavailable'),
        (STATUS_ON_LEAVE, 'On leave'),
    ]
    user = models.OneToOneField(User, on_delete=models.PROTECT, related_name='doctor_profile')
    specialization = models.CharField(max_length=120)
    qualification = models.CharField(max_length=255)
    experience = models.PositiveIntegerField(help_text="Years of experience")
    phone = models.CharField(max_length=32)
    # The dashboard counts available doctors; index the status filter
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Dr. {self.user.get_full_name() or self.user.username} ({self.specialization})"


class Patient(models.Model):
    """A patient chart.

    Patients are managed by staff and do not need an account.  When a
    patient signs up for the portal, ``user`` links the chart to the
    login so the portal endpoints can return only their own data.
    """
    STATUS_ACTIVE = 'active'
    STATUS_DISCHARGED = 'discharged'
    STATUS_CRITICAL = 'critical'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_DISCHARGED, 'Discharged'),
        (STATUS_CRITICAL, 'Critical'),
    ]
    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patient_record'
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=20)
    phone = models.CharField(max_length=32)
    email = models.EmailField(blank=True)
    address = models.TextField()
    emergency_contact = models.CharField(max_length=255, blank=True)
    blood_group = models.CharField(max_length=5, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.full_name} (#{self.pk})"


class Appointment(models.Model):
    """A scheduled visit of a patient with a doctor.

    Appointments are never removed.  Their ``status`` moves from
    ``scheduled`` to one of the terminal states ``completed`` or
    ``cancelled``; see :mod:`core.services.appointments`.
    """
    STATUS_SCHEDULED = 'scheduled'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='appointments')
    date = models.DateField()
    time = models.TimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    reason = models.CharField(max_length=255)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['date', 'status'], name='appointment_date_status_idx'),
            models.Index(fields=['doctor', 'date'], name='appointment_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"Appointment #{self.pk} {self.date} {self.time} ({self.status})"


class AppointmentTransition(models.Model):
    """Records a status transition for an appointment."""
    appointment = models.ForeignKey(Appointment, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)
    operator = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointment_transitions'
    )
    timestamp = models.DateTimeField(auto_now_add=True)
    reason = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return f"{self.appointment_id}: {self.from_status} → {self.to_status}"


class MedicalRecord(models.Model):
    """A diagnosis/treatment entry in a patient's history."""
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='medical_records')
    diagnosis = models.TextField()
    treatment = models.TextField()
    visit_date = models.DateField()
    notes = models.TextField(blank=True)
    attachments = models.JSONField(default=list, blank=True)
    archived = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Record #{self.pk} for patient {self.patient_id}"


class Prescription(models.Model):
    """Medicines prescribed by a doctor.

    ``medicines``, ``dosage`` and ``duration`` are parallel lists: the
    n-th dosage and duration belong to the n-th medicine.
    """
    STATUS_ACTIVE = 'active'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='prescriptions')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='prescriptions')
    prescription_date = models.DateField()
    medicines = models.JSONField(default=list)
    dosage = models.JSONField(default=list)
    duration = models.JSONField(default=list)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Prescription #{self.pk} for patient {self.patient_id}"


class Ward(models.Model):
    """A ward with a bed capacity and an operator-set status."""
    TYPE_CHOICES = [
        ('general', 'General'),
        ('private', 'Private'),
        ('semi-private', 'Semi-private'),
        ('icu', 'ICU'),
    ]
    STATUS_AVAILABLE = 'available'
    STATUS_FULL = 'full'
    STATUS_MAINTENANCE = 'maintenance'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_FULL, 'Full'),
        (STATUS_MAINTENANCE, 'Maintenance'),
    ]
    ward_number = models.CharField(max_length=20, unique=True)
    ward_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    occupied_beds = models.PositiveIntegerField(default=0)
    floor = models.IntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(occupied_beds__lte=models.F('capacity')),
                name='ward_occupied_within_capacity',
            ),
        ]

    def __str__(self) -> str:
        return f"Ward {self.ward_number} ({self.occupied_beds}/{self.capacity})"


class Room(models.Model):
    """A room inside a ward, optionally holding a patient.

    ``occupied`` is true exactly when ``patient`` is set.
    """
    ward = models.ForeignKey(Ward, on_delete=models.PROTECT, related_name='rooms')
    room_number = models.CharField(max_length=20, unique=True)
    room_type = models.CharField(max_length=20, choices=Ward.TYPE_CHOICES)
    # The dashboard counts free rooms; index the flag
    occupied = models.BooleanField(default=False, db_index=True)
    patient = models.ForeignKey(
        Patient, null=True, blank=True, on_delete=models.PROTECT, related_name='rooms'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(occupied=True, patient__isnull=False)
                    | models.Q(occupied=False, patient__isnull=True)
                ),
                name='room_occupied_matches_patient',
            ),
        ]

    def __str__(self) -> str:
        return f"Room {self.room_number} in ward {self.ward_id}"


class Bill(models.Model):
    """An invoice for services rendered to a patient.

    ``total_amount`` and ``status`` are computed from ``services`` and
    ``paid_amount`` by :mod:`core.services.billing` on every write.
    """
    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_PARTIALLY_PAID = 'partially-paid'
    STATUS_OVERDUE = 'overdue'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PAID, 'Paid'),
        (STATUS_PARTIALLY_PAID, 'Partially paid'),
        (STATUS_OVERDUE, 'Overdue'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='bills')
    bill_date = models.DateField()
    due_date = models.DateField()
    services = models.JSONField(default=list)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    paid_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=0) & models.Q(paid_amount__lte=models.F('total_amount')),
                name='bill_paid_within_total',
            ),
        ]

    def __str__(self) -> str:
        return f"Bill #{self.pk} {self.paid_amount}/{self.total_amount} ({self.status})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]
