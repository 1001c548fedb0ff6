"""
Role allow-list permission classes.

Each route names the roles that may call it.  Classes ending in
``OrReadOnly`` let every staff role read and restrict writes.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

ADMIN = 'admin'
DOCTOR = 'doctor'
STAFF = 'staff'
PATIENT = 'patient'

STAFF_ROLES = {ADMIN, DOCTOR, STAFF}


class RolePermission(BasePermission):
    """Allow users whose role is in ``roles``.

    ``read_roles`` widens access for safe methods; ``None`` means the
    same set as ``roles``.
    """
    roles: set[str] = set()
    read_roles: set[str] | None = None

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        role = getattr(user, "role", None)
        if request.method in SAFE_METHODS and self.read_roles is not None:
            return role in self.read_roles
        return role in self.roles


class IsAdminRole(RolePermission):
    """Administrators only."""
    roles = {ADMIN}


class IsStaffRole(RolePermission):
    """Any hospital employee (admin, doctor, staff)."""
    roles = STAFF_ROLES


class IsClinician(RolePermission):
    """Administrators and doctors."""
    roles = {ADMIN, DOCTOR}


class IsBillingStaff(RolePermission):
    roles = {ADMIN, STAFF}


class IsPatientRole(RolePermission):
    """Allow access only to users with the patient role."""
    roles = {PATIENT}


class AdminOrReadOnly(RolePermission):
    """Staff roles read; only administrators write."""
    roles = {ADMIN}
    read_roles = STAFF_ROLES


class ClinicianOrReadOnly(RolePermission):
    roles = {ADMIN, DOCTOR}
    read_roles = STAFF_ROLES
