from dataclasses import dataclass
from typing import Optional

from .models import Attorney, InternalStaff, User


@dataclass(frozen=True)
class Principal:
    """
    The signed-in caller as the access checks see it.

    Built once per request from the session user and handed to every
    permission check, so nothing downstream reaches back into the session.
    Only the profile matching the role is resolved.
    """

    user_id: int
    role: str
    attorney_id: Optional[int] = None
    internal_staff_id: Optional[int] = None

    @classmethod
    def from_user(cls, user):
        attorney_id = None
        internal_staff_id = None
        if user.role == User.Role.ATTORNEY:
            attorney_id = Attorney.objects.filter(user_id=user.pk).values_list('id', flat=True).first()
        elif user.role == User.Role.INTERNAL_STAFF:
            internal_staff_id = InternalStaff.objects.filter(user_id=user.pk).values_list('id', flat=True).first()
        return cls(
            user_id=user.pk,
            role=user.role,
            attorney_id=attorney_id,
            internal_staff_id=internal_staff_id,
        )

    @classmethod
    def from_request(cls, request):
        return cls.from_user(request.user)
