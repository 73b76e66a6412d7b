from rest_framework import status
from rest_framework.exceptions import APIException


class Forbidden(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class Conflict(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'A record with these values already exists.'
    default_code = 'conflict'


class OverlapConflict(Conflict):
    default_detail = 'Leave request overlaps with existing leave.'
    default_code = 'overlap_conflict'


class NoWorkingDays(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'No working days in the selected date range.'
    default_code = 'no_working_days'


class InsufficientBalance(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Insufficient leave balance.'
    default_code = 'insufficient_balance'


class InvalidState(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'This leave request can no longer be changed.'
    default_code = 'invalid_state'


class Unauthorized(APIException):
    """401 raised by views that run without an authenticator, e.g. login."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication credentials were invalid.'
    default_code = 'authentication_failed'
