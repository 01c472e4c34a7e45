from datetime import datetime, timezone

from flask import Blueprint, current_app
from flask_login import current_user, login_required, login_user, logout_user

from league import db
from league.errors import AuthenticationError, ConflictError, created, success
from league.models import User
from league.ratelimit import rate_limited
from league.session import current_session
from league.validation import (
    add_error, json_body, normalize_email, raise_if_errors, sanitize_name, str_field,
)

auth = Blueprint('auth', __name__)


def _me_payload(user):
    payload = user.to_dict()
    payload.update(current_session().to_dict())
    return payload


@auth.route('/register', methods=['POST'])
@rate_limited('auth')
def register():
    data = json_body()
    errors = {}
    email = normalize_email(data.get('email'))
    if email is None:
        add_error(errors, 'email', 'A valid email address is required')
    password = str_field(data, 'password', errors, required=True, min_length=8, max_length=128, strip=False)
    full_name = str_field(data, 'fullName', errors, required=True, min_length=1, max_length=150)
    phone = str_field(data, 'phone', errors, max_length=20)
    raise_if_errors(errors)

    if User.query.filter_by(email=email).first():
        raise ConflictError('An account with this email already exists')

    new_user = User(email=email, full_name=sanitize_name(full_name, 150), phone=phone)
    new_user.set_password(password)
    db.session.add(new_user)
    db.session.commit()
    login_user(new_user)
    current_app.logger.info(f"[auth-register] user={new_user.id}")
    return created(_me_payload(new_user))


@auth.route('/login', methods=['POST'])
@rate_limited('auth')
def login():
    data = json_body()
    email = normalize_email(data.get('email'))
    password = data.get('password')
    user = User.query.filter_by(email=email).first() if email else None
    if not user or not isinstance(password, str) or not user.check_password(password):
        current_app.logger.info(f"[auth-login-failed] email={email}")
        raise AuthenticationError('Invalid email or password')
    if not user.is_active:
        raise AuthenticationError('This account has been deactivated')
    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()
    login_user(user)
    current_app.logger.info(f"[auth-login] user={user.id}")
    return success(_me_payload(user))


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return success({'loggedOut': True})


@auth.route('/me', methods=['GET'])
@login_required
def me():
    return success(_me_payload(current_user))
