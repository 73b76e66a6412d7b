import logging

from rest_framework import authentication, exceptions

from .models import User
from .tokens import ACCESS, TokenError, decode_token

logger = logging.getLogger(__name__)


def resolve_user(token: str, expected_type: str = ACCESS) -> User:
    """Return the active user a token belongs to or raise ``AuthenticationFailed``."""
    try:
        payload = decode_token(token, expected_type)
    except TokenError as exc:
        raise exceptions.AuthenticationFailed(str(exc))

    user = User.objects.filter(pk=payload['sub']).first()
    if user is None or not user.is_active:
        raise exceptions.AuthenticationFailed('Invalid token or user deactivated.')
    return user


class JWTAuthentication(authentication.BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed('Invalid authorization header.')
        try:
            token = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid authorization header.')
        return resolve_user(token), token

    def authenticate_header(self, request):
        return self.keyword
