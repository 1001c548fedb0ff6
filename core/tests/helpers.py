"""Object builders shared by the API and service tests."""
import datetime
import itertools

from rest_framework.test import APIClient

from core.models import Doctor, Patient, User, Ward, Room

_seq = itertools.count(1)


def make_user(role='staff', username=None, password='P@ssw0rd1', **extra):
    n = next(_seq)
    username = username or f'{role}{n}'
    extra.setdefault('email', f'{username}.{n}@example.com')
    return User.objects.create_user(username=username, password=password, role=role, **extra)


def make_doctor(user=None, **extra):
    user = user or make_user('doctor', full_name='Dr. Gregory House')
    defaults = {'specialization': 'Cardiology', 'qualification': 'MD', 'experience': 7, 'phone': '555-0100'}
    defaults.update(extra)
    return Doctor.objects.create(user=user, **defaults)


def make_patient(**extra):
    n = next(_seq)
    defaults = {
        'first_name': 'Jane',
        'last_name': f'Doe{n}',
        'date_of_birth': datetime.date(1990, 1, 15),
        'gender': 'female',
        'phone': f'555-{n:04d}',
        'address': '123 Main St',
    }
    defaults.update(extra)
    return Patient.objects.create(**defaults)


def make_ward(**extra):
    n = next(_seq)
    defaults = {'ward_number': f'W-{n}', 'ward_type': 'general', 'capacity': 4, 'floor': 1}
    defaults.update(extra)
    return Ward.objects.create(**defaults)


def make_room(ward=None, **extra):
    n = next(_seq)
    ward = ward or make_ward()
    defaults = {'room_number': f'R-{n}', 'room_type': ward.ward_type}
    defaults.update(extra)
    return Room.objects.create(ward=ward, **defaults)


def client_for(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client
