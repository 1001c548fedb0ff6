import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from rest_framework.exceptions import ValidationError as DRFValidation

from .audit import log_action

User = get_user_model()
logger = logging.getLogger(__name__)

# Roles a visitor may pick when signing up; admins are created by admins
SELF_SERVICE_ROLES = ('doctor', 'staff', 'patient')


def register_user(*, username: str, password: str, email: str, full_name: str = '',
                  role: Optional[str] = None, created_by=None):
    role = role or User.ROLE_STAFF
    if created_by is None and role not in SELF_SERVICE_ROLES:
        raise DRFValidation({'role': [f'role "{role}" cannot be chosen at registration']})
    if User.objects.filter(username__iexact=username).exists():
        raise DRFValidation({'username': ['username already taken']})
    if User.objects.filter(email__iexact=email).exists():
        raise DRFValidation({'email': ['email already registered']})
    candidate = User(username=username, email=email, full_name=full_name, role=role)
    try:
        validate_password(password, user=candidate)
    except ValidationError as e:
        raise DRFValidation({'password': e.messages})
    with transaction.atomic():
        user = User.objects.create_user(
            username=username, password=password, email=email, full_name=full_name, role=role,
        )
        log_action(user=created_by or user, action='user_register', object_type='user',
                   object_id=user.pk, detail={'role': role})
    logger.info('registered user %s with role %s', user.username, role)
    return user


def serialize_user(user) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'fullName': user.get_full_name() or user.username,
        'role': user.role,
        'isActive': user.is_active,
        'createdAt': user.date_joined.isoformat() if user.date_joined else None,
    }
