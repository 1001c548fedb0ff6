"""
URL mappings for the hospital backend API.

Paths match the ones the browser client calls.  Trailing slashes are
deliberately omitted.
"""
from django.urls import path, include

from .auth_views import (
    register_view,
    login_view,
    logout_view,
    current_user_view,
    jwt_refresh_view,
    users_list,
)
from .views import health
from .views.dashboard import dashboard_stats, appointment_stats, upcoming_appointments, recent_patients
from .views.doctors import doctors_list, doctor_detail, doctor_deactivate, specializations
from .views.patients import patients_list, patient_detail, patient_discharge, export_patients
from .views.appointments import (
    appointments_list,
    appointment_detail,
    appointment_cancel,
    appointment_complete,
    appointment_reschedule,
    appointment_history,
    appointments_by_patient,
    appointments_by_doctor,
    appointments_by_date,
)
from .views.medical_records import records_list, record_detail, record_archive, records_by_patient
from .views.prescriptions import (
    prescriptions_list,
    prescription_detail,
    prescription_cancel,
    prescriptions_by_patient,
    prescriptions_by_doctor,
)
from .views.wards import (
    wards_list,
    ward_detail,
    ward_deactivate,
    ward_admit,
    ward_release,
    rooms_list,
    room_detail,
    rooms_by_ward,
    room_assign,
    room_release,
)
from .views.bills import bills_list, bill_detail, bill_payments, bills_by_patient
from .views.portal import (
    portal_profile,
    portal_appointments,
    portal_medical_records,
    portal_prescriptions,
    portal_bills,
)


urlpatterns = [
    path('api/health', health.healthz, name='health'),
    path('', include('django_prometheus.urls')),

    # Auth
    path('api/register', register_view, name='register_view'),
    path('api/login', login_view, name='login_view'),
    path('api/logout', logout_view, name='logout_view'),
    path('api/user', current_user_view, name='current_user'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/users', users_list, name='users_list'),

    # Dashboard
    path('api/dashboard/stats', dashboard_stats, name='dashboard_stats'),
    path('api/dashboard/appointment-stats', appointment_stats, name='dashboard_appointment_stats'),
    path('api/dashboard/upcoming-appointments', upcoming_appointments, name='dashboard_upcoming'),
    path('api/dashboard/recent-patients', recent_patients, name='dashboard_recent_patients'),

    # Doctors
    path('api/doctors', doctors_list, name='doctors_list'),
    path('api/doctors/<int:pk>', doctor_detail, name='doctor_detail'),
    path('api/doctors/<int:pk>/deactivate', doctor_deactivate, name='doctor_deactivate'),
    path('api/specializations', specializations, name='specializations'),

    # Patients
    path('api/patients', patients_list, name='patients_list'),
    path('api/patients/export', export_patients, name='patients_export'),
    path('api/patients/<int:pk>', patient_detail, name='patient_detail'),
    path('api/patients/<int:pk>/discharge', patient_discharge, name='patient_discharge'),

    # Appointments
    path('api/appointments', appointments_list, name='appointments_list'),
    path('api/appointments/<int:pk>', appointment_detail, name='appointment_detail'),
    path('api/appointments/<int:pk>/cancel', appointment_cancel, name='appointment_cancel'),
    path('api/appointments/<int:pk>/complete', appointment_complete, name='appointment_complete'),
    path('api/appointments/<int:pk>/reschedule', appointment_reschedule, name='appointment_reschedule'),
    path('api/appointments/<int:pk>/history', appointment_history, name='appointment_history'),
    path('api/appointments/patient/<int:patient_id>', appointments_by_patient, name='appointments_by_patient'),
    path('api/appointments/doctor/<int:doctor_id>', appointments_by_doctor, name='appointments_by_doctor'),
    path('api/appointments/date/<str:day>', appointments_by_date, name='appointments_by_date'),

    # Medical records
    path('api/medical-records', records_list, name='records_list'),
    path('api/medical-records/<int:pk>', record_detail, name='record_detail'),
    path('api/medical-records/<int:pk>/archive', record_archive, name='record_archive'),
    path('api/medical-records/patient/<int:patient_id>', records_by_patient, name='records_by_patient'),

    # Prescriptions
    path('api/prescriptions', prescriptions_list, name='prescriptions_list'),
    path('api/prescriptions/<int:pk>', prescription_detail, name='prescription_detail'),
    path('api/prescriptions/<int:pk>/cancel', prescription_cancel, name='prescription_cancel'),
    path('api/prescriptions/patient/<int:patient_id>', prescriptions_by_patient, name='prescriptions_by_patient'),
    path('api/prescriptions/doctor/<int:doctor_id>', prescriptions_by_doctor, name='prescriptions_by_doctor'),

    # Wards & rooms
    path('api/wards', wards_list, name='wards_list'),
    path('api/wards/<int:pk>', ward_detail, name='ward_detail'),
    path('api/wards/<int:pk>/deactivate', ward_deactivate, name='ward_deactivate'),
    path('api/wards/<int:pk>/admit', ward_admit, name='ward_admit'),
    path('api/wards/<int:pk>/release', ward_release, name='ward_release'),
    path('api/rooms', rooms_list, name='rooms_list'),
    path('api/rooms/<int:pk>', room_detail, name='room_detail'),
    path('api/rooms/ward/<int:ward_id>', rooms_by_ward, name='rooms_by_ward'),
    path('api/rooms/<int:pk>/assign', room_assign, name='room_assign'),
    path('api/rooms/<int:pk>/release', room_release, name='room_release'),

    # Billing
    path('api/bills', bills_list, name='bills_list'),
    path('api/bills/<int:pk>', bill_detail, name='bill_detail'),
    path('api/bills/<int:pk>/payments', bill_payments, name='bill_payments'),
    path('api/bills/patient/<int:patient_id>', bills_by_patient, name='bills_by_patient'),

    # Patient portal
    path('api/portal/profile', portal_profile, name='portal_profile'),
    path('api/portal/appointments', portal_appointments, name='portal_appointments'),
    path('api/portal/medical-records', portal_medical_records, name='portal_medical_records'),
    path('api/portal/prescriptions', portal_prescriptions, name='portal_prescriptions'),
    path('api/portal/bills', portal_bills, name='portal_bills'),
]
