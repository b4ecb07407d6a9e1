# Auth blueprint: session login plus bearer tokens for API clients.
from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from extensions import bcrypt, db
from models import User
from routes.common import json_error
from services.auth_tokens import issue_token

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")


def _user_payload(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'name': user.full_name,
        'role': user.role,
    }


@bp.route('/login', methods=['POST'], endpoint='login')
def login():
    data = request.get_json(silent=True) or request.form
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        return json_error('Username and password are required', 400, 'invalid_request')

    user = User.query.filter_by(username=username).first()
    if user is None or not user.check_password(password, bcrypt):
        logger.warning('Failed login for %s', username)
        return json_error('Invalid username or password', 401, 'invalid_credentials')
    if not user.is_active:
        return json_error('Account is deactivated', 403, 'inactive')

    login_user(user)
    user.last_login()
    db.session.commit()
    return jsonify({'success': True, 'token': issue_token(user), 'user': _user_payload(user)})


@bp.route('/logout', methods=['POST'], endpoint='logout')
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@bp.route('/me', methods=['GET'], endpoint='me')
@login_required
def me():
    return jsonify({'success': True, 'user': _user_payload(current_user)})
