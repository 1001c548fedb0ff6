from rest_framework import serializers

from core.exceptions import OccupancyViolation
from core.models import Patient, Room, Ward
from core.services.occupancy import check_room_consistency, validate_occupancy

from .fields import CleanCharField


class WardSerializer(serializers.Serializer):
    wardNumber = CleanCharField(source='ward_number', max_length=20)
    wardType = serializers.ChoiceField(source='ward_type', choices=Ward.TYPE_CHOICES)
    capacity = serializers.IntegerField(min_value=1)
    occupiedBeds = serializers.IntegerField(source='occupied_beds', required=False)
    floor = serializers.IntegerField()
    status = serializers.ChoiceField(choices=Ward.STATUS_CHOICES, required=False)

    def validate_wardNumber(self, v):
        taken = Ward.objects.filter(ward_number__iexact=v)
        if self.instance is not None:
            taken = taken.exclude(pk=self.instance.pk)
        if taken.exists():
            raise serializers.ValidationError('ward number already exists')
        return v

    def validate(self, attrs):
        capacity = attrs.get('capacity', getattr(self.instance, 'capacity', None))
        occupied = attrs.get('occupied_beds', getattr(self.instance, 'occupied_beds', 0))
        validate_occupancy(capacity, occupied)
        return attrs


class BedsSerializer(serializers.Serializer):
    beds = serializers.IntegerField(min_value=1, default=1)


class RoomSerializer(serializers.Serializer):
    """A room is occupied exactly when it names a patient.

    When ``occupied`` is left out it follows ``patientId``.
    """
    wardId = serializers.PrimaryKeyRelatedField(source='ward', queryset=Ward.objects.all())
    roomNumber = CleanCharField(source='room_number', max_length=20)
    roomType = serializers.ChoiceField(source='room_type', choices=Ward.TYPE_CHOICES)
    occupied = serializers.BooleanField(required=False)
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all(),
                                                   required=False, allow_null=True)

    def validate_roomNumber(self, v):
        taken = Room.objects.filter(room_number__iexact=v)
        if self.instance is not None:
            taken = taken.exclude(pk=self.instance.pk)
        if taken.exists():
            raise serializers.ValidationError('room number already exists')
        return v

    def validate(self, attrs):
        patient = attrs['patient'] if 'patient' in attrs else getattr(self.instance, 'patient', None)
        if (self.instance is not None and self.instance.occupied and patient is not None
                and patient.pk != self.instance.patient_id):
            # swapping occupants goes through release and assign
            raise OccupancyViolation(f'room {self.instance.room_number} is already occupied')
        if 'occupied' in attrs:
            occupied = attrs['occupied']
        elif 'patient' in attrs or self.instance is None:
            occupied = patient is not None
            attrs['occupied'] = occupied
        else:
            occupied = self.instance.occupied
        check_room_consistency(occupied, patient)
        return attrs


class AssignRoomSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
