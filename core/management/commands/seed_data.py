"""
Management command to populate the database with demo data.

Creates one account per role, a doctor profile, a handful of patient
charts (some linked to portal accounts), wards with rooms, and a few
appointments, records, prescriptions and bills.  Running it twice does
not duplicate anything.
"""
from datetime import date, time, timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from core.models import (
    User, Doctor, Patient, Appointment, MedicalRecord, Prescription, Ward, Room, Bill,
)
from core.services import billing


USERS = [
    # username, password, email, full name, role
    ('admin', 'admin123', 'admin@hospital.com', 'Admin User', 'admin'),
    ('doctor', 'doctor123', 'doctor@hospital.com', 'Dr. John Smith', 'doctor'),
    ('staff', 'staff123', 'staff@hospital.com', 'Staff Member', 'staff'),
    ('patient', 'patient123', 'patient@example.com', 'Jane Doe', 'patient'),
    ('robert', 'robert123', 'robert@example.com', 'Robert Johnson', 'patient'),
    ('sarah', 'sarah123', 'sarah@example.com', 'Sarah Williams', 'patient'),
    ('michael', 'michael123', 'michael@example.com', 'Michael Brown', 'patient'),
]

PATIENTS = [
    # portal username, first, last, dob, gender, phone, address, emergency, blood
    ('patient', 'Jane', 'Doe', '1990-01-15', 'female', '555-987-6543',
     '123 Main St, Anytown, CA 12345', '555-111-2222', 'O+'),
    ('robert', 'Robert', 'Johnson', '1985-05-20', 'male', '555-333-4444',
     '456 Oak Ave, Somewhere, NY 67890', '555-555-5555', 'A+'),
    ('sarah', 'Sarah', 'Williams', '1992-11-08', 'female', '555-777-8888',
     '789 Pine St, Nowhere, TX 54321', '555-999-0000', 'B-'),
    ('michael', 'Michael', 'Brown', '1978-03-12', 'male', '555-444-3333',
     '101 Maple Dr, Anytown, CA 12345', '555-222-1111', 'AB+'),
]

WARDS = [
    # number, type, capacity, floor, rooms
    ('W-101', 'general', 20, 1, ['101A', '101B', '101C']),
    ('W-201', 'private', 6, 2, ['201A', '201B']),
    ('W-301', 'icu', 8, 3, ['301A']),
]


class Command(BaseCommand):
    help = 'Populate the database with demo users, patients, wards, appointments and bills'

    def handle(self, *args, **options):
        self.stdout.write('Seeding demo data...')
        with transaction.atomic():
            users = self.create_users()
            doctor = self.create_doctor(users['doctor'])
            patients = self.create_patients(users)
            self.create_wards(patients)
            self.create_appointments(doctor, patients)
            self.create_records(doctor, patients)
            self.create_bills(patients)
        self.stdout.write(self.style.SUCCESS('Demo data ready.'))
        for username, password, _, _, role in USERS:
            self.stdout.write(f'  {role:<8} {username} / {password}')

    def create_users(self):
        users = {}
        for username, password, email, full_name, role in USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={'email': email, 'full_name': full_name, 'role': role,
                          'is_staff': role == 'admin', 'is_superuser': role == 'admin'},
            )
            if created:
                user.set_password(password)
                user.save(update_fields=['password'])
            users[username] = user
        return users

    def create_doctor(self, user):
        doctor, _ = Doctor.objects.get_or_create(
            user=user,
            defaults={'specialization': 'Cardiology', 'qualification': 'MD, PhD',
                      'experience': 10, 'phone': '555-123-4567'},
        )
        return doctor

    def create_patients(self, users):
        patients = []
        for username, first, last, dob, gender, phone, address, emergency, blood in PATIENTS:
            patient, _ = Patient.objects.get_or_create(
                first_name=first, last_name=last, date_of_birth=date.fromisoformat(dob),
                defaults={'gender': gender, 'phone': phone, 'email': users[username].email,
                          'address': address, 'emergency_contact': emergency, 'blood_group': blood,
                          'user': users[username]},
            )
            patients.append(patient)
        return patients

    def create_wards(self, patients):
        for number, ward_type, capacity, floor, rooms in WARDS:
            ward, _ = Ward.objects.get_or_create(
                ward_number=number,
                defaults={'ward_type': ward_type, 'capacity': capacity, 'floor': floor},
            )
            for room_number in rooms:
                Room.objects.get_or_create(room_number=room_number,
                                           defaults={'ward': ward, 'room_type': ward_type})
        # one admitted patient
        room = Room.objects.get(room_number='201A')
        if not room.occupied:
            room.patient = patients[1]
            room.occupied = True
            room.save(update_fields=['patient', 'occupied', 'updated_at'])
            Ward.objects.filter(pk=room.ward_id, occupied_beds=0).update(occupied_beds=1)

    def create_appointments(self, doctor, patients):
        if Appointment.objects.exists():
            return
        today = timezone.localdate()
        plan = [
            (patients[0], today, time(9, 30), Appointment.STATUS_SCHEDULED, 'Annual check-up'),
            (patients[1], today, time(11, 0), Appointment.STATUS_SCHEDULED, 'Chest pain follow-up'),
            (patients[2], today + timedelta(days=1), time(14, 15), Appointment.STATUS_SCHEDULED, 'Blood pressure review'),
            (patients[3], today - timedelta(days=3), time(10, 0), Appointment.STATUS_COMPLETED, 'ECG results'),
            (patients[0], today - timedelta(days=1), time(16, 0), Appointment.STATUS_CANCELLED, 'Consultation'),
        ]
        for patient, day, at, status, reason in plan:
            Appointment.objects.create(patient=patient, doctor=doctor, date=day, time=at,
                                       status=status, reason=reason)

    def create_records(self, doctor, patients):
        if MedicalRecord.objects.exists():
            return
        visit = timezone.localdate() - timedelta(days=3)
        MedicalRecord.objects.create(
            patient=patients[3], diagnosis='Stable angina', treatment='Beta blockers, lifestyle changes',
            visit_date=visit, notes='Review in three months',
        )
        Prescription.objects.create(
            patient=patients[3], doctor=doctor, prescription_date=visit,
            medicines=['Metoprolol', 'Aspirin'], dosage=['50 mg twice daily', '75 mg daily'],
            duration=['90 days', '90 days'],
        )

    def create_bills(self, patients):
        if Bill.objects.exists():
            return
        today = timezone.localdate()
        billing.create_bill(
            patient=patients[3], bill_date=today - timedelta(days=3), due_date=today + timedelta(days=27),
            services=[{'name': 'Consultation', 'amount': '100.00'}, {'name': 'ECG', 'amount': '50.00'}],
            paid_amount='150.00',
        )
        billing.create_bill(
            patient=patients[1], bill_date=today, due_date=today + timedelta(days=30),
            services=[{'name': 'Private room (1 night)', 'amount': '200.00'}],
        )
        billing.create_bill(
            patient=patients[0], bill_date=today - timedelta(days=40), due_date=today - timedelta(days=10),
            services=[{'name': 'Lab work', 'amount': '100.00'}, {'name': 'X-ray', 'amount': '100.00'}],
            paid_amount='50.00',
        )
