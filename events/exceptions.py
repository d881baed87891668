# events/exceptions.py
"""
Typed rejections raised by the team engine and registration services.

Each one carries a user-displayable `detail` and a short machine `code`
naming the rule that failed. The DRF exception handler in
core.exceptions turns them into responses; views never catch them.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class EngineError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = "rejected"


class ValidationError(EngineError):
    """Bad input shape or value (e.g. team size out of bounds)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "invalid"


class NotFoundError(EngineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class ConflictError(EngineError):
    """Duplicate membership/registration, full team, exhausted capacity or stock."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict with current state."
    default_code = "conflict"


class StateError(EngineError):
    """Operation not allowed for the current event or team status."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed in the current state."
    default_code = "invalid_state"


class PermissionDeniedError(EngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "permission_denied"
