"""
Django admin registrations for the core models.

Superusers can inspect and correct data at ``/admin/``.  Bills and
appointments are read through the admin but their totals and statuses
should be changed through the API so the business rules apply.
"""

from django.contrib import admin

from .models import (
    User,
    Doctor,
    Patient,
    Appointment,
    AppointmentTransition,
    MedicalRecord,
    Prescription,
    Ward,
    Room,
    Bill,
    AuditEvent,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'full_name', 'role', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'email', 'full_name')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'specialization', 'experience', 'status')
    list_filter = ('status', 'specialization')
    search_fields = ('user__username', 'user__full_name', 'specialization')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'first_name', 'last_name', 'date_of_birth', 'phone', 'status')
    list_filter = ('status', 'gender', 'blood_group')
    search_fields = ('first_name', 'last_name', 'phone', 'email')


class AppointmentTransitionInline(admin.TabularInline):
    model = AppointmentTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'timestamp', 'reason')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'date', 'time', 'status')
    list_filter = ('status', 'date')
    search_fields = ('patient__first_name', 'patient__last_name', 'reason')
    readonly_fields = ('status',)
    inlines = [AppointmentTransitionInline]


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'visit_date', 'archived')
    list_filter = ('archived',)
    search_fields = ('patient__first_name', 'patient__last_name', 'diagnosis')


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'prescription_date', 'status')
    list_filter = ('status',)


@admin.register(Ward)
class WardAdmin(admin.ModelAdmin):
    list_display = ('ward_number', 'ward_type', 'floor', 'occupied_beds', 'capacity', 'status')
    list_filter = ('ward_type', 'status', 'floor')
    search_fields = ('ward_number',)


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('room_number', 'ward', 'room_type', 'occupied', 'patient')
    list_filter = ('occupied', 'room_type')
    search_fields = ('room_number',)


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'bill_date', 'due_date', 'total_amount', 'paid_amount', 'status')
    list_filter = ('status',)
    readonly_fields = ('total_amount', 'status')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'user', 'object_type', 'object_id')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'user__username')
