"""
Integration tests for the hospital backend API.

These tests exercise the role allow-lists, CRUD flows and the error
envelope through Django REST Framework's APIClient within the
APITestCase base class.

To run the tests:

```
pytest -q core/tests
```
"""
import datetime

from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Appointment, Bill, Doctor, MedicalRecord, Patient, Prescription, Room, Ward
from .helpers import client_for, make_doctor, make_patient, make_room, make_user, make_ward


class HospitalAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = make_user('admin')
        self.doctor_user = make_user('doctor', full_name='Dr. Meredith Grey')
        self.staff = make_user('staff')
        self.patient_user = make_user('patient')
        self.doctor = make_doctor(self.doctor_user)
        self.patient = make_patient(first_name='Robert', last_name='Johnson')
        self.today = datetime.date.today()

    def as_(self, user):
        return client_for(user)

    # -----------------------------------------------------------------
    # Access control
    # -----------------------------------------------------------------
    def test_anonymous_requests_are_rejected(self):
        response = self.client.get('/api/patients')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['ok'])

    def test_health_is_public(self):
        response = self.client.get('/api/health')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['ok'])

    def test_role_allow_lists(self):
        cases = [
            # user, method, path, expected
            (self.staff, 'get', '/api/patients', 200),
            (self.staff, 'post', '/api/patients', 403),
            (self.staff, 'get', '/api/medical-records', 403),
            (self.staff, 'get', '/api/bills', 200),
            (self.doctor_user, 'get', '/api/bills', 403),
            (self.doctor_user, 'post', '/api/doctors', 403),
            (self.doctor_user, 'get', '/api/doctors', 200),
            (self.staff, 'post', '/api/wards', 403),
            (self.patient_user, 'get', '/api/appointments', 403),
            (self.patient_user, 'get', '/api/doctors', 403),
            (self.staff, 'get', '/api/users', 403),
            (self.admin, 'get', '/api/users', 200),
            (self.admin, 'get', '/api/portal/profile', 403),
        ]
        for user, method, path, expected in cases:
            with self.subTest(user=user.role, method=method, path=path):
                response = getattr(self.as_(user), method)(path, {}, format='json')
                self.assertEqual(response.status_code, expected)

    def test_error_envelope(self):
        response = self.as_(self.admin).get('/api/patients/999999')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(set(response.data), {'ok', 'message', 'error'})
        self.assertIsInstance(response.data['message'], str)

    # -----------------------------------------------------------------
    # Patients
    # -----------------------------------------------------------------
    def test_patient_crud_and_discharge(self):
        client = self.as_(self.doctor_user)
        payload = {
            'firstName': 'Sarah', 'lastName': 'Williams', 'dateOfBirth': '1992-11-08',
            'gender': 'female', 'phone': '555-777-8888', 'address': '789 Pine St',
            'bloodGroup': 'B-', 'email': None,
        }
        created = client.post('/api/patients', payload, format='json')
        self.assertEqual(created.status_code, 201, created.data)
        pid = created.data['id']
        self.assertEqual(created.data['status'], 'active')
        self.assertEqual(created.data['email'], '')

        updated = client.put(f'/api/patients/{pid}', {'phone': '555-000-0000'}, format='json')
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.data['phone'], '555-000-0000')
        self.assertEqual(updated.data['lastName'], 'Williams')

        deleted = client.delete(f'/api/patients/{pid}')
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.data['status'], 'discharged')
        self.assertTrue(Patient.objects.filter(pk=pid).exists())

    def test_patient_markup_is_stripped(self):
        response = self.as_(self.admin).post('/api/patients', {
            'firstName': '<b>Ann</b>', 'lastName': 'Lee', 'dateOfBirth': '2000-01-01',
            'gender': 'female', 'phone': '555', 'address': '<script>x</script>Main St',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['firstName'], 'Ann')
        self.assertNotIn('<script>', response.data['address'])

    def test_patient_search_and_export(self):
        make_patient(first_name='Zed', last_name='Alpha')
        client = self.as_(self.admin)
        found = client.get('/api/patients', {'q': 'zed'})
        self.assertEqual([p['firstName'] for p in found.data], ['Zed'])
        export = client.get('/api/patients/export')
        self.assertEqual(export.status_code, 200)
        self.assertTrue(export['Content-Type'].startswith('text/csv'))
        body = export.content.decode()
        self.assertIn('First name', body.splitlines()[0])
        self.assertIn('Johnson', body)
        self.assertEqual(self.as_(self.staff).get('/api/patients/export').status_code, 403)

    # -----------------------------------------------------------------
    # Doctors
    # -----------------------------------------------------------------
    def test_doctor_profile_requires_doctor_role(self):
        client = self.as_(self.admin)
        body = {'userId': self.staff.id, 'specialization': 'Neurology', 'qualification': 'MD',
                'experience': 3, 'phone': '555-2222'}
        self.assertEqual(client.post('/api/doctors', body, format='json').status_code, 400)

        other = make_user('doctor')
        body['userId'] = other.id
        created = client.post('/api/doctors', body, format='json')
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data['status'], 'available')

        specs = client.get('/api/specializations')
        self.assertEqual(specs.data, ['Cardiology', 'Neurology'])

        deleted = client.delete(f"/api/doctors/{created.data['id']}")
        self.assertEqual(deleted.data['status'], 'unavailable')
        self.assertTrue(Doctor.objects.filter(pk=created.data['id']).exists())

    # -----------------------------------------------------------------
    # Appointments
    # -----------------------------------------------------------------
    def _create_appointment(self, client, **extra):
        body = {'patientId': self.patient.id, 'doctorId': self.doctor.id, 'date': self.today.isoformat(),
                'time': '09:30', 'reason': 'Check-up'}
        body.update(extra)
        return client.post('/api/appointments', body, format='json')

    def test_appointment_lifecycle(self):
        client = self.as_(self.staff)
        created = self._create_appointment(client)
        self.assertEqual(created.status_code, 201, created.data)
        aid = created.data['id']
        self.assertEqual(created.data['status'], 'scheduled')
        self.assertEqual(created.data['time'], '09:30')

        by_date = client.get(f'/api/appointments/date/{self.today.isoformat()}')
        self.assertEqual([a['id'] for a in by_date.data], [aid])
        self.assertEqual(client.get('/api/appointments/date/not-a-date').status_code, 400)
        self.assertEqual(len(client.get(f'/api/appointments/patient/{self.patient.id}').data), 1)
        self.assertEqual(len(client.get(f'/api/appointments/doctor/{self.doctor.id}').data), 1)

        done = client.post(f'/api/appointments/{aid}/complete', {'reason': 'seen'}, format='json')
        self.assertEqual(done.data['status'], 'completed')

        again = client.delete(f'/api/appointments/{aid}')
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(again.data['error']['code'], 'invalid_state')

        history = client.get(f'/api/appointments/{aid}/history')
        self.assertEqual([h['to'] for h in history.data['transitionHistory']], ['completed'])

    def test_delete_cancels_appointment(self):
        client = self.as_(self.admin)
        aid = self._create_appointment(client).data['id']
        response = client.delete(f'/api/appointments/{aid}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertTrue(Appointment.objects.filter(pk=aid).exists())

    def test_appointment_cannot_be_created_completed(self):
        response = self._create_appointment(self.as_(self.admin), status='completed')
        self.assertEqual(response.status_code, 409)

    def test_rejected_status_change_keeps_notes(self):
        client = self.as_(self.staff)
        aid = self._create_appointment(client, notes='original').data['id']
        client.post(f'/api/appointments/{aid}/cancel', {}, format='json')
        response = client.put(f'/api/appointments/{aid}', {'notes': 'edited', 'status': 'completed'},
                              format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        appointment = Appointment.objects.get(pk=aid)
        self.assertEqual(appointment.notes, 'original')
        self.assertEqual(appointment.status, Appointment.STATUS_CANCELLED)

    def test_reschedule(self):
        client = self.as_(self.doctor_user)
        aid = self._create_appointment(client).data['id']
        tomorrow = (self.today + datetime.timedelta(days=1)).isoformat()
        moved = client.post(f'/api/appointments/{aid}/reschedule', {'date': tomorrow, 'time': '14:00'},
                            format='json')
        self.assertEqual(moved.status_code, 200)
        self.assertEqual((moved.data['date'], moved.data['time']), (tomorrow, '14:00'))
        client.post(f'/api/appointments/{aid}/cancel', {}, format='json')
        blocked = client.put(f'/api/appointments/{aid}', {'time': '15:00'}, format='json')
        self.assertEqual(blocked.status_code, 409)

    # -----------------------------------------------------------------
    # Medical records & prescriptions
    # -----------------------------------------------------------------
    def test_medical_record_archive(self):
        client = self.as_(self.doctor_user)
        created = client.post('/api/medical-records', {
            'patientId': self.patient.id, 'diagnosis': 'Flu', 'treatment': 'Rest',
            'visitDate': self.today.isoformat(), 'attachments': [{'name': 'xray.png'}],
        }, format='json')
        self.assertEqual(created.status_code, 201, created.data)
        rid = created.data['id']
        self.assertEqual(client.delete(f'/api/medical-records/{rid}').data['archived'], True)
        self.assertEqual(client.get(f'/api/medical-records/patient/{self.patient.id}').data, [])
        with_archived = client.get(f'/api/medical-records/patient/{self.patient.id}', {'includeArchived': '1'})
        self.assertEqual(len(with_archived.data), 1)
        self.assertTrue(MedicalRecord.objects.filter(pk=rid).exists())

    def test_prescription_arrays_must_line_up(self):
        client = self.as_(self.doctor_user)
        body = {
            'patientId': self.patient.id, 'doctorId': self.doctor.id, 'prescriptionDate': self.today.isoformat(),
            'medicines': ['Aspirin', 'Metoprolol'], 'dosage': ['75 mg'], 'duration': ['30 days', '30 days'],
        }
        self.assertEqual(client.post('/api/prescriptions', body, format='json').status_code, 400)
        body['medicines'] = []
        body['dosage'] = []
        body['duration'] = []
        self.assertEqual(client.post('/api/prescriptions', body, format='json').status_code, 400)

        body.update(medicines=['Aspirin'], dosage=['75 mg'], duration=['30 days'])
        created = client.post('/api/prescriptions', body, format='json')
        self.assertEqual(created.status_code, 201, created.data)
        pid = created.data['id']
        mismatch = client.put(f'/api/prescriptions/{pid}', {'medicines': ['A', 'B']}, format='json')
        self.assertEqual(mismatch.status_code, 400)

        cancelled = client.delete(f'/api/prescriptions/{pid}')
        self.assertEqual(cancelled.data['status'], 'cancelled')
        self.assertEqual(client.post(f'/api/prescriptions/{pid}/cancel').status_code, 409)
        self.assertEqual(len(client.get(f'/api/prescriptions/doctor/{self.doctor.id}').data), 1)
        self.assertTrue(Prescription.objects.filter(pk=pid).exists())

    # -----------------------------------------------------------------
    # Wards & rooms
    # -----------------------------------------------------------------
    def test_ward_occupancy_is_validated(self):
        client = self.as_(self.admin)
        overfull = client.post('/api/wards', {'wardNumber': 'W-1', 'wardType': 'icu', 'capacity': 2,
                                              'occupiedBeds': 3, 'floor': 1}, format='json')
        self.assertEqual(overfull.status_code, 400)
        self.assertEqual(overfull.data['error']['code'], 'occupancy')

        created = client.post('/api/wards', {'wardNumber': 'W-1', 'wardType': 'icu', 'capacity': 2,
                                             'floor': 1}, format='json')
        self.assertEqual(created.status_code, 201, created.data)
        wid = created.data['id']
        self.assertEqual(created.data['occupancyRate'], 0)
        self.assertFalse(created.data['isFull'])

        self.assertEqual(client.put(f'/api/wards/{wid}', {'capacity': 0}, format='json').status_code, 400)
        admitted = client.post(f'/api/wards/{wid}/admit', {'beds': 2}, format='json')
        self.assertTrue(admitted.data['isFull'])
        self.assertEqual(client.post(f'/api/wards/{wid}/admit', {}, format='json').status_code, 400)
        self.assertEqual(client.put(f'/api/wards/{wid}', {'capacity': 1}, format='json').status_code, 400)
        released = client.post(f'/api/wards/{wid}/release', {'beds': 1}, format='json')
        self.assertEqual(released.data['occupiedBeds'], 1)

    def test_ward_delete_blocked_by_rooms(self):
        ward = make_ward()
        room = make_room(ward)
        client = self.as_(self.admin)
        blocked = client.delete(f'/api/wards/{ward.id}')
        self.assertEqual(blocked.status_code, 400)
        self.assertEqual(blocked.data['error']['code'], 'in_use')
        self.assertEqual(client.delete(f'/api/rooms/{room.id}').status_code, 204)
        done = client.delete(f'/api/wards/{ward.id}')
        self.assertEqual(done.data['status'], Ward.STATUS_MAINTENANCE)

    def test_ward_status_edit_cannot_bypass_room_check(self):
        ward = make_ward()
        room = make_room(ward)
        client = self.as_(self.admin)
        blocked = client.put(f'/api/wards/{ward.id}', {'status': 'maintenance'}, format='json')
        self.assertEqual(blocked.status_code, 400)
        self.assertEqual(blocked.data['error']['code'], 'in_use')
        ward.refresh_from_db()
        self.assertEqual(ward.status, Ward.STATUS_AVAILABLE)
        # other edits of a ward with rooms still go through
        self.assertEqual(client.put(f'/api/wards/{ward.id}', {'floor': 3}, format='json').data['floor'], 3)
        client.delete(f'/api/rooms/{room.id}')
        done = client.put(f'/api/wards/{ward.id}', {'status': 'maintenance'}, format='json')
        self.assertEqual(done.data['status'], Ward.STATUS_MAINTENANCE)

    def test_room_occupancy_consistency(self):
        ward = make_ward()
        client = self.as_(self.admin)
        bad = client.post('/api/rooms', {'wardId': ward.id, 'roomNumber': '1A', 'roomType': 'general',
                                         'occupied': True}, format='json')
        self.assertEqual(bad.status_code, 400)
        created = client.post('/api/rooms', {'wardId': ward.id, 'roomNumber': '1A', 'roomType': 'general',
                                             'patientId': self.patient.id}, format='json')
        self.assertEqual(created.status_code, 201, created.data)
        self.assertTrue(created.data['occupied'])
        rid = created.data['id']

        self.assertEqual(client.delete(f'/api/rooms/{rid}').status_code, 400)
        released = client.post(f'/api/rooms/{rid}/release')
        self.assertFalse(released.data['occupied'])
        assigned = client.post(f'/api/rooms/{rid}/assign', {'patientId': self.patient.id}, format='json')
        self.assertEqual(assigned.data['patientId'], self.patient.id)
        self.assertEqual([r['id'] for r in client.get(f'/api/rooms/ward/{ward.id}').data], [rid])
        self.assertEqual(client.put(f'/api/rooms/{rid}', {'patientId': None}, format='json').data['occupied'], False)
        self.assertTrue(Room.objects.filter(pk=rid, occupied=False, patient__isnull=True).exists())

    def test_room_edit_cannot_swap_occupant(self):
        room = make_room()
        other = make_patient(first_name='Alice')
        client = self.as_(self.admin)
        client.post(f'/api/rooms/{room.id}/assign', {'patientId': self.patient.id}, format='json')
        swapped = client.put(f'/api/rooms/{room.id}', {'patientId': other.id}, format='json')
        self.assertEqual(swapped.status_code, 400)
        self.assertEqual(swapped.data['error']['code'], 'occupancy')
        room.refresh_from_db()
        self.assertEqual(room.patient_id, self.patient.id)
        # same occupant and plain field edits are fine
        same = client.put(f'/api/rooms/{room.id}', {'patientId': self.patient.id, 'roomType': 'icu'},
                          format='json')
        self.assertEqual(same.status_code, 200, same.data)
        self.assertEqual(same.data['roomType'], 'icu')

    def test_patient_in_a_room_cannot_be_deleted(self):
        from django.db.models import ProtectedError
        make_room(occupied=True, patient=self.patient)
        with self.assertRaises(ProtectedError):
            self.patient.delete()

    # -----------------------------------------------------------------
    # Bills
    # -----------------------------------------------------------------
    def test_bill_lifecycle(self):
        client = self.as_(self.staff)
        body = {
            'patientId': self.patient.id, 'billDate': self.today.isoformat(),
            'dueDate': (self.today + datetime.timedelta(days=30)).isoformat(),
            'services': [{'name': 'Consultation', 'amount': '100'}, {'name': 'ECG', 'amount': '50'}],
            'paidAmount': '150', 'totalAmount': '1.00',
        }
        created = client.post('/api/bills', body, format='json')
        self.assertEqual(created.status_code, 201, created.data)
        self.assertEqual(created.data['totalAmount'], '150.00')
        self.assertEqual(created.data['status'], 'paid')
        bid = created.data['id']

        more = client.put(f'/api/bills/{bid}', {'services': body['services'] + [{'name': 'Lab', 'amount': '50'}]},
                          format='json')
        self.assertEqual(more.data['totalAmount'], '200.00')
        self.assertEqual(more.data['status'], 'partially-paid')

        over = client.post(f'/api/bills/{bid}/payments', {'amount': '60'}, format='json')
        self.assertEqual(over.status_code, 400)
        self.assertEqual(over.data['error']['code'], 'invalid_payment')
        paid = client.post(f'/api/bills/{bid}/payments', {'amount': '50'}, format='json')
        self.assertEqual(paid.data['status'], 'paid')

        self.assertEqual(client.delete(f'/api/bills/{bid}').status_code, 405)
        self.assertEqual(len(client.get(f'/api/bills/patient/{self.patient.id}').data), 1)

    def test_bill_input_is_validated(self):
        client = self.as_(self.admin)
        base = {'patientId': self.patient.id, 'billDate': self.today.isoformat(),
                'dueDate': self.today.isoformat()}
        for services, paid in [([], '0'), ([{'name': 'x', 'amount': '0'}], '0'),
                               ([{'name': 'x', 'amount': '100'}], '100.01')]:
            with self.subTest(services=services, paid=paid):
                response = client.post('/api/bills', {**base, 'services': services, 'paidAmount': paid},
                                       format='json')
                self.assertEqual(response.status_code, 400)
        self.assertFalse(Bill.objects.exists())
        early_due = {**base, 'dueDate': (self.today - datetime.timedelta(days=1)).isoformat(),
                     'services': [{'name': 'x', 'amount': '10'}]}
        self.assertEqual(client.post('/api/bills', early_due, format='json').status_code, 400)

    def test_overdue_is_display_only(self):
        client = self.as_(self.admin)
        created = client.post('/api/bills', {
            'patientId': self.patient.id,
            'billDate': (self.today - datetime.timedelta(days=40)).isoformat(),
            'dueDate': (self.today - datetime.timedelta(days=10)).isoformat(),
            'services': [{'name': 'x', 'amount': '10'}],
        }, format='json')
        self.assertEqual(created.data['status'], 'pending')
        self.assertEqual(created.data['displayStatus'], 'overdue')
