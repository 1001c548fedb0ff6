import datetime

import pytest
from django.utils import timezone

from core.models import Appointment, Patient
from core.services import dashboard
from core.services import patients as patient_service
from core.services.appointments import cancel_appointment

from .helpers import make_doctor, make_patient, make_room, make_user, client_for

pytestmark = pytest.mark.django_db


def _appointment(day, status=Appointment.STATUS_SCHEDULED, doctor=None):
    return Appointment.objects.create(
        patient=make_patient(), doctor=doctor or make_doctor(), date=day,
        time=datetime.time(9, 0), status=status, reason='visit',
    )


def test_counts():
    today = timezone.localdate()
    doctor = make_doctor()
    make_doctor(status='on-leave')
    _appointment(today, doctor=doctor)
    _appointment(today, Appointment.STATUS_COMPLETED, doctor=doctor)
    _appointment(today, Appointment.STATUS_CANCELLED, doctor=doctor)
    _appointment(today + datetime.timedelta(days=1), doctor=doctor)
    make_room()
    make_room(occupied=True, patient=make_patient())

    stats = dashboard.compute_stats(today)
    assert stats == {
        'totalPatients': Patient.objects.count(),
        'todayAppointments': 2,
        'availableDoctors': 1,
        'availableRooms': 1,
    }


def test_cancelling_todays_appointment_drops_it_from_count():
    today = timezone.localdate()
    appointment = _appointment(today)
    assert dashboard.dashboard_stats(today)['todayAppointments'] == 1
    cancel_appointment(appointment)
    assert dashboard.dashboard_stats(today)['todayAppointments'] == 0


def test_cache_is_invalidated_by_writes(settings):
    settings.DASHBOARD_CACHE_TTL = 300
    today = timezone.localdate()
    assert dashboard.dashboard_stats(today)['totalPatients'] == 0
    # a raw insert bypasses invalidation, so the cached count is served
    make_patient()
    assert dashboard.dashboard_stats(today)['totalPatients'] == 0
    patient_service.create_patient({
        'first_name': 'John', 'last_name': 'Roe', 'date_of_birth': datetime.date(1980, 2, 2),
        'gender': 'male', 'phone': '555-1111', 'address': '1 Elm St',
    })
    assert dashboard.dashboard_stats(today)['totalPatients'] == 2


def test_ttl_zero_disables_cache(settings):
    settings.DASHBOARD_CACHE_TTL = 0
    today = timezone.localdate()
    assert dashboard.dashboard_stats(today)['totalPatients'] == 0
    make_patient()
    assert dashboard.dashboard_stats(today)['totalPatients'] == 1


def test_appointment_stats_by_status():
    today = timezone.localdate()
    doctor = make_doctor()
    _appointment(today, doctor=doctor)
    _appointment(today, Appointment.STATUS_CANCELLED, doctor=doctor)
    result = dashboard.appointment_stats(today)
    assert result['total'] == 2
    assert result['byStatus'] == {'scheduled': 1, 'completed': 0, 'cancelled': 1}


def test_dashboard_endpoints_for_staff_only():
    make_patient()
    staff = client_for(make_user('staff'))
    r = staff.get('/api/dashboard/stats')
    assert r.status_code == 200
    assert set(r.data) == {'totalPatients', 'todayAppointments', 'availableDoctors', 'availableRooms'}
    assert staff.get('/api/dashboard/recent-patients').status_code == 200
    assert staff.get('/api/dashboard/upcoming-appointments').status_code == 200
    assert staff.get('/api/dashboard/appointment-stats').status_code == 200

    patient = client_for(make_user('patient'))
    assert patient.get('/api/dashboard/stats').status_code == 403
