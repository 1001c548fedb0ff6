from rest_framework import serializers

from core.models import Appointment, Doctor, Patient

from .fields import CleanCharField


class AppointmentSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    doctorId = serializers.PrimaryKeyRelatedField(source='doctor', queryset=Doctor.objects.all())
    date = serializers.DateField()
    time = serializers.TimeField()
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False)
    reason = CleanCharField(max_length=255)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True)


class TransitionSerializer(serializers.Serializer):
    reason = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=255)


class RescheduleSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = serializers.TimeField()
    doctorId = serializers.PrimaryKeyRelatedField(source='doctor', queryset=Doctor.objects.all(),
                                                  required=False)
