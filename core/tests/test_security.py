import datetime

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from core.models import AuditEvent, User

from .helpers import make_doctor, make_patient, make_user

pytestmark = pytest.mark.django_db


def login(client, username, password='P@ssw0rd1'):
    return client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')


def test_no_role_bypass_in_login():
    client = APIClient()
    u = make_user('patient', username='u1')
    # Try to bypass by sending role
    r = client.post(reverse('login_view'), {'username': 'u1', 'password': 'P@ssw0rd1', 'role': 'admin'},
                    format='json')
    assert r.status_code == 200
    assert r.data['role'] == 'patient'
    u.refresh_from_db()
    assert u.role == 'patient'


def test_bad_credentials_are_rejected_and_audited():
    make_user('staff', username='u2')
    r = login(APIClient(), 'u2', 'wrong-password')
    assert r.status_code == 401
    assert r.data['ok'] is False
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_login_returns_jwt_and_legacy_token():
    make_user('staff', username='u_jwt')
    r = login(APIClient(), 'u_jwt')
    assert r.status_code == 200
    assert r.data['jwt_access'] and r.data['jwt_refresh'] and r.data['token']

    token_client = APIClient()
    token_client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    assert token_client.get(reverse('current_user')).data['username'] == 'u_jwt'

    jwt_client = APIClient()
    jwt_client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    assert jwt_client.get(reverse('current_user')).status_code == 200

    refreshed = APIClient().post(reverse('jwt_refresh'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert refreshed.status_code == 200
    assert refreshed.data['jwt_access']


def test_login_starts_a_session():
    make_user('doctor', username='u_session')
    client = APIClient()
    assert login(client, 'u_session').status_code == 200
    me = client.get(reverse('current_user'))
    assert me.status_code == 200
    assert me.data['role'] == 'doctor'


def test_logout_revokes_token_and_refresh():
    make_user('staff', username='u_out')
    client = APIClient()
    r = login(client, 'u_out')
    client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    out = client.post(reverse('logout_view'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert out.status_code == 200
    assert out.data['blacklisted'] == 1
    assert client.get(reverse('current_user')).status_code == 401
    refreshed = APIClient().post(reverse('jwt_refresh'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert refreshed.status_code == 401


def test_registration_cannot_choose_admin():
    client = APIClient()
    body = {'username': 'newbie', 'password': 'Sup3r-Secret!', 'email': 'newbie@example.com',
            'fullName': 'New Bie', 'role': 'admin'}
    r = client.post(reverse('register_view'), body, format='json')
    assert r.status_code == 400
    assert not User.objects.filter(username='newbie').exists()

    body['role'] = 'doctor'
    r = client.post(reverse('register_view'), body, format='json')
    assert r.status_code == 201
    assert r.data['user']['role'] == 'doctor'
    assert r.data['token']

    dup = APIClient().post(reverse('register_view'), {**body, 'username': 'other'}, format='json')
    assert dup.status_code == 400


def test_registration_defaults_to_staff_and_validates_password():
    client = APIClient()
    weak = client.post(reverse('register_view'), {'username': 'weak', 'password': '123456',
                                                  'email': 'weak@example.com', 'fullName': 'W'}, format='json')
    assert weak.status_code == 400
    r = client.post(reverse('register_view'), {'username': 'plain', 'password': 'Sup3r-Secret!',
                                               'email': 'plain@example.com', 'fullName': 'Plain'}, format='json')
    assert r.status_code == 201
    assert r.data['role'] == 'staff'


def test_admin_can_register_admins():
    admin = make_user('admin')
    client = APIClient()
    client.force_authenticate(admin)
    r = client.post(reverse('register_view'), {'username': 'admin2', 'password': 'Sup3r-Secret!',
                                               'email': 'admin2@example.com', 'fullName': 'Second Admin',
                                               'role': 'admin'}, format='json')
    assert r.status_code == 201
    assert User.objects.get(username='admin2').role == 'admin'


def test_portal_only_shows_own_records():
    mine_user = make_user('patient', username='jane')
    other_user = make_user('patient', username='john')
    mine = make_patient(user=mine_user, first_name='Jane')
    other = make_patient(user=other_user, first_name='John')
    doctor = make_doctor()
    from core.models import Appointment
    for p in (mine, other):
        Appointment.objects.create(patient=p, doctor=doctor, date=datetime.date.today(),
                                   time=datetime.time(10, 0), reason=f'visit {p.first_name}')

    client = APIClient()
    assert login(client, 'jane').status_code == 200
    profile = client.get(reverse('portal_profile'))
    assert profile.data['id'] == mine.id
    appointments = client.get(reverse('portal_appointments')).data
    assert [a['patientId'] for a in appointments] == [mine.id]
    for name in ('portal_medical_records', 'portal_prescriptions', 'portal_bills'):
        assert client.get(reverse(name)).status_code == 200
    # staff endpoints stay closed
    assert client.get(f'/api/appointments/patient/{other.id}').status_code == 403


def test_portal_without_linked_chart_is_404():
    make_user('patient', username='nochart')
    client = APIClient()
    login(client, 'nochart')
    assert client.get(reverse('portal_profile')).status_code == 404
