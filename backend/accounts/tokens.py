from datetime import datetime, timezone as dt_timezone

import jwt
from django.conf import settings

ACCESS = 'access'
REFRESH = 'refresh'


class TokenError(Exception):
    pass


def _encode(user, token_type: str, lifetime) -> str:
    now = datetime.now(dt_timezone.utc)
    payload = {
        'sub': str(user.pk),
        'email': user.email,
        'role': user.role,
        'type': token_type,
        'iat': now,
        'exp': now + lifetime,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user) -> str:
    return _encode(user, ACCESS, settings.JWT_ACCESS_TOKEN_LIFETIME)


def create_refresh_token(user) -> str:
    return _encode(user, REFRESH, settings.JWT_REFRESH_TOKEN_LIFETIME)


def issue_tokens(user) -> dict:
    return {
        'token': create_access_token(user),
        'refresh_token': create_refresh_token(user),
    }


def decode_token(token: str, expected_type: str = ACCESS) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise TokenError('Token has expired') from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError('Invalid token') from exc
    if payload.get('type') != expected_type:
        raise TokenError('Invalid token type')
    if 'sub' not in payload:
        raise TokenError('Invalid token')
    return payload
