from rest_framework import serializers

from core.models import User

from .fields import CleanCharField


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('username is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('password is required')
        return v


class RegisterSerializer(serializers.Serializer):
    username = serializers.RegexField(r'^[\w.@+-]+$', max_length=150)
    password = serializers.CharField(write_only=True, min_length=6)
    email = serializers.EmailField()
    fullName = CleanCharField(source='full_name', max_length=255)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, required=False)


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField()
