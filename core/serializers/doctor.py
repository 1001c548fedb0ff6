from rest_framework import serializers

from core.models import Doctor, User

from .fields import CleanCharField


class DoctorSerializer(serializers.Serializer):
    userId = serializers.PrimaryKeyRelatedField(source='user', queryset=User.objects.all())
    specialization = CleanCharField(max_length=120)
    qualification = CleanCharField(max_length=255)
    experience = serializers.IntegerField(min_value=0, max_value=80)
    phone = CleanCharField(max_length=32)
    status = serializers.ChoiceField(choices=Doctor.STATUS_CHOICES, required=False)


class DoctorListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    specialization = serializers.CharField(max_length=120, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Doctor.STATUS_CHOICES, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)
