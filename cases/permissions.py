"""
Who may see which case.

can_access_case() is the one place that decides per-case access. Every
message endpoint goes through it, and accessible_cases() builds the same
rule as a query for the inbox, so list and point checks cannot drift.
"""

from rest_framework.permissions import BasePermission

from users.models import User

from .models import Case

ADMIN_AREA_ROLES = frozenset({User.Role.ADMIN, User.Role.INTERNAL_STAFF, User.Role.ATTORNEY})


def can_access_case(principal, case):
    role = principal.role

    if role == User.Role.ADMIN:
        return True
    if role == User.Role.CLIENT:
        return case.user_id == principal.user_id
    if role == User.Role.ATTORNEY:
        return principal.attorney_id is not None and case.assigned_attorney_id == principal.attorney_id
    if role == User.Role.INTERNAL_STAFF:
        return (
            principal.internal_staff_id is not None
            and case.assigned_internal_staff_id == principal.internal_staff_id
        )
    return False


def accessible_cases(principal):
    """Non-deleted cases that can_access_case() would admit for this principal."""
    cases = Case.objects.active()
    role = principal.role

    if role == User.Role.ADMIN:
        return cases
    if role == User.Role.CLIENT:
        return cases.filter(user_id=principal.user_id)
    if role == User.Role.ATTORNEY and principal.attorney_id is not None:
        return cases.filter(assigned_attorney_id=principal.attorney_id)
    if role == User.Role.INTERNAL_STAFF and principal.internal_staff_id is not None:
        return cases.filter(assigned_internal_staff_id=principal.internal_staff_id)
    return cases.none()


def can_access_admin_area(role):
    # Staff browse every case here; message access still needs an assignment
    return role in ADMIN_AREA_ROLES


def is_admin(role):
    return role == User.Role.ADMIN


# --- DRF permission classes ---

class CanAccessAdminArea(BasePermission):
    message = "You do not have permission to access this page."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and can_access_admin_area(request.user.role))


class IsAdmin(BasePermission):
    message = "Only administrators can do this."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and is_admin(request.user.role))
