from functools import wraps

from rest_framework.exceptions import NotFound, PermissionDenied

from users.principal import Principal

from .models import Case
from .permissions import can_access_case


def case_access_required(denied_message="You do not have permission to access this case."):
    """
    Decorator for API view methods that act on one case.

    Loads the case named by the URL's 'case_id' kwarg, builds the caller's
    Principal and runs the access check. The view method is then called as
    view(self, request, case, principal, *args, **kwargs).
    """
    def decorator(view_method):
        @wraps(view_method)
        def _wrapped_view(self, request, *args, **kwargs):
            case_id = kwargs.pop('case_id')
            case = Case.objects.active().filter(pk=case_id).first()
            if case is None:
                raise NotFound("Case not found.")

            principal = Principal.from_request(request)
            if not can_access_case(principal, case):
                raise PermissionDenied(denied_message)

            return view_method(self, request, case, principal, *args, **kwargs)

        return _wrapped_view

    return decorator
