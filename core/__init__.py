"""Core application for the hospital backend.

This package contains the models, serializers, services, views and
route registrations behind the hospital management REST API: patients,
doctors, appointments, medical records, prescriptions, wards, rooms and
billing.
"""
