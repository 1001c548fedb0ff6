import pytest
from django.db import IntegrityError, transaction

from core.exceptions import OccupancyViolation, ResourceInUse
from core.models import Room, Ward
from core.services import occupancy

from .helpers import make_patient, make_room, make_ward

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize('capacity, occupied', [(4, 0), (4, 4), (1, 1)])
def test_valid_occupancy(capacity, occupied):
    occupancy.validate_occupancy(capacity, occupied)


@pytest.mark.parametrize('capacity, occupied', [(4, 5), (4, -1), (0, 0)])
def test_invalid_occupancy(capacity, occupied):
    with pytest.raises(OccupancyViolation):
        occupancy.validate_occupancy(capacity, occupied)


def test_database_rejects_overfull_ward():
    with pytest.raises(IntegrityError), transaction.atomic():
        Ward.objects.create(ward_number='W-X', ward_type='icu', capacity=2, occupied_beds=3, floor=1)


def test_database_rejects_inconsistent_room():
    ward = make_ward()
    with pytest.raises(IntegrityError), transaction.atomic():
        Room.objects.create(ward=ward, room_number='R-X', room_type='general', occupied=True)


def test_admit_and_release_respect_bounds():
    ward = make_ward(capacity=2)
    ward = occupancy.admit_to_ward(ward, 2)
    assert occupancy.is_full(ward)
    assert occupancy.occupancy_rate(ward) == 1.0
    with pytest.raises(OccupancyViolation):
        occupancy.admit_to_ward(ward)
    ward = occupancy.release_from_ward(ward, 2)
    assert ward.occupied_beds == 0
    with pytest.raises(OccupancyViolation):
        occupancy.release_from_ward(ward)


def test_no_admissions_under_maintenance():
    ward = make_ward(status=Ward.STATUS_MAINTENANCE)
    with pytest.raises(OccupancyViolation):
        occupancy.admit_to_ward(ward)


def test_deactivate_rejected_while_rooms_exist():
    ward = make_ward()
    room = make_room(ward)
    with pytest.raises(ResourceInUse):
        occupancy.deactivate_ward(ward)
    occupancy.delete_room(room)
    ward = occupancy.deactivate_ward(ward)
    assert ward.status == Ward.STATUS_MAINTENANCE


def test_assign_and_release_room():
    room = make_room()
    patient = make_patient()
    room = occupancy.assign_room(room, patient)
    assert room.occupied and room.patient == patient
    with pytest.raises(OccupancyViolation):
        occupancy.assign_room(room, make_patient())
    with pytest.raises(ResourceInUse):
        occupancy.delete_room(room)
    room = occupancy.release_room(room)
    assert not room.occupied and room.patient is None


def test_room_consistency_check():
    occupancy.check_room_consistency(False, None)
    with pytest.raises(OccupancyViolation):
        occupancy.check_room_consistency(True, None)


def test_update_ward_guards_maintenance():
    ward = make_ward()
    make_room(ward)
    with pytest.raises(ResourceInUse):
        occupancy.update_ward(ward, {'status': Ward.STATUS_MAINTENANCE})
    ward = occupancy.update_ward(ward, {'floor': 2})
    assert (ward.floor, ward.status) == (2, Ward.STATUS_AVAILABLE)
    with pytest.raises(OccupancyViolation):
        occupancy.update_ward(ward, {'occupied_beds': ward.capacity + 1})
