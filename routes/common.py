# Shared helpers for blueprints. No route handlers.
from __future__ import annotations

from functools import wraps
from typing import Iterable

from flask import jsonify
from flask_login import current_user


def json_error(message: str, status: int, error: str | None = None):
    payload = {'success': False, 'message': message}
    if error:
        payload['error'] = error
    return jsonify(payload), status


def _has_role(user, roles: Iterable[str]) -> bool:
    try:
        if not getattr(user, 'is_authenticated', False):
            return False
        return (getattr(user, 'role', '') or '') in tuple(roles)
    except Exception:
        # Fail closed
        return False


def roles_required(*roles: str):
    """Reject callers whose role is not listed; runs after ``login_required``."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not _has_role(current_user, roles):
                return json_error('You do not have permission to access this report', 403, 'forbidden')
            return view(*args, **kwargs)
        return wrapped
    return decorator


def display_name(user) -> str:
    name = getattr(user, 'full_name', None)
    return name or 'User'
