from rest_framework import serializers

from core.models import Patient, User

from .fields import CleanCharField


class PatientSerializer(serializers.Serializer):
    firstName = CleanCharField(source='first_name', max_length=100)
    lastName = CleanCharField(source='last_name', max_length=100)
    dateOfBirth = serializers.DateField(source='date_of_birth')
    gender = CleanCharField(max_length=20)
    phone = CleanCharField(max_length=32)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    address = CleanCharField()
    emergencyContact = CleanCharField(source='emergency_contact', required=False, allow_blank=True,
                                      allow_null=True, max_length=255)
    bloodGroup = CleanCharField(source='blood_group', required=False, allow_blank=True,
                                allow_null=True, max_length=5)
    status = serializers.ChoiceField(choices=Patient.STATUS_CHOICES, required=False)
    userId = serializers.PrimaryKeyRelatedField(
        source='user', queryset=User.objects.filter(role=User.ROLE_PATIENT),
        required=False, allow_null=True,
    )

    def validate_email(self, v):
        return v or ''

    def validate_userId(self, user):
        if user is None:
            return user
        linked = Patient.objects.filter(user=user)
        if self.instance is not None:
            linked = linked.exclude(pk=self.instance.pk)
        if linked.exists():
            raise serializers.ValidationError('user is already linked to another patient')
        return user
