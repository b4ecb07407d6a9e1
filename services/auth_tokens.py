"""
Signed bearer tokens for API clients.

``/auth/login`` hands one out; the login manager's request loader accepts it
in an ``Authorization: Bearer <token>`` header. Tokens carry the user id and
expire after ``AUTH_TOKEN_MAX_AGE`` seconds.
"""
from __future__ import annotations

from typing import Optional

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

TOKEN_SALT = 'pitstop-auth-token'


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def issue_token(user) -> str:
    return _serializer().dumps({'uid': int(user.id), 'role': user.role})


def read_token(token: str, max_age: Optional[int] = None) -> Optional[int]:
    """User id carried by ``token``, or ``None`` when it is forged, stale or malformed."""
    if not token:
        return None
    if max_age is None:
        max_age = current_app.config.get('AUTH_TOKEN_MAX_AGE')
    try:
        data = _serializer().loads(token, max_age=max_age)
    except (SignatureExpired, BadSignature):
        return None
    try:
        return int(data.get('uid'))
    except (AttributeError, TypeError, ValueError):
        return None


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    if not header_value:
        return None
    scheme, _, value = header_value.partition(' ')
    if scheme.lower() != 'bearer' or not value.strip():
        return None
    return value.strip()
