import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.settings import api_settings

logger = logging.getLogger(__name__)


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The resource already exists."
    default_code = "conflict"


def success_response(data=None, message=None, status_code=status.HTTP_200_OK):
    """Wraps a payload in the {success, data, message} envelope every endpoint returns."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return Response(body, status=status_code)


def error_response(message, status_code, code=None):
    error = {"message": message}
    if code:
        error["code"] = code
    return Response({"success": False, "error": error}, status=status_code)


def _first_message(detail):
    # ValidationError.detail can be a str, a list or a dict of lists
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_message(value)
            if field == api_settings.NON_FIELD_ERRORS_KEY:
                return message
            return f"{field}: {message}"
        return ""
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


MESSAGES_BY_EXCEPTION = [
    (exceptions.NotAuthenticated, status.HTTP_401_UNAUTHORIZED, "You need to sign in."),
    (exceptions.AuthenticationFailed, status.HTTP_401_UNAUTHORIZED, "Your session is invalid. Please sign in again."),
]


def exception_handler(exc, context):
    """
    Project-wide DRF exception handler.

    Every error leaves the API as {"success": false, "error": {"message": ...}}.
    Anything that is not an APIException is logged and reported as a generic 500
    so that no internal detail reaches the caller.
    """
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    for exc_class, status_code, default_message in MESSAGES_BY_EXCEPTION:
        if isinstance(exc, exc_class):
            # SessionAuthentication has no WWW-Authenticate header, so DRF
            # downgrades these to 403 before we get here.
            message = str(exc.detail)
            if message == str(exc_class.default_detail):
                message = default_message
            return error_response(message, status_code)

    if isinstance(exc, exceptions.ParseError):
        return error_response("Send the request body as JSON.", status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, exceptions.ValidationError):
        return error_response(_first_message(exc.detail), status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, exceptions.APIException):
        return error_response(_first_message(exc.detail), exc.status_code)

    view = context.get("view")
    logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "view")
    return error_response(
        "Something went wrong on our side. Please try again later.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
