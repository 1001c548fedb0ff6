from rest_framework import serializers

from core.models import Doctor, Patient, Prescription

from .fields import CleanCharField


class MedicalRecordSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    diagnosis = CleanCharField()
    treatment = CleanCharField()
    visitDate = serializers.DateField(source='visit_date')
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True)
    attachments = serializers.JSONField(required=False, allow_null=True)

    def validate_attachments(self, v):
        if v is None:
            return []
        if not isinstance(v, list):
            raise serializers.ValidationError('attachments must be a list')
        return v


class PrescriptionSerializer(serializers.Serializer):
    """Medicines, dosage and duration are parallel lists of equal length."""
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    doctorId = serializers.PrimaryKeyRelatedField(source='doctor', queryset=Doctor.objects.all())
    prescriptionDate = serializers.DateField(source='prescription_date')
    medicines = serializers.ListField(child=CleanCharField(max_length=255), allow_empty=False)
    dosage = serializers.ListField(child=CleanCharField(max_length=255), allow_empty=False)
    duration = serializers.ListField(child=CleanCharField(max_length=255), allow_empty=False)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=Prescription.STATUS_CHOICES, required=False)

    def validate(self, attrs):
        lists = {}
        for key in ('medicines', 'dosage', 'duration'):
            if key in attrs:
                lists[key] = attrs[key]
            elif self.instance is not None:
                lists[key] = getattr(self.instance, key)
        lengths = {len(v) for v in lists.values()}
        if len(lengths) > 1:
            raise serializers.ValidationError(
                'medicines, dosage and duration must have the same number of entries'
            )
        return attrs
