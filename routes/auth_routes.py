from flask import Blueprint, request, session, current_app, jsonify

from extensions import limiter
from utils import current_role, role_required, ROLES
from utils.security import check_credentials, hash_password, verify_password
from utils.settings import get_setting, set_setting
from utils.validators import clean_text, password_problems

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def _password_key(role: str) -> str:
    return f"{role.upper()}_PASSWORD_HASH"


def _stored_password(role: str) -> str:
    # A password changed through the portal wins over the .env value
    changed = get_setting(_password_key(role))
    if changed:
        return changed
    return current_app.config.get(f"{role.upper()}_PASSWORD", "")


def _login_rate_limit() -> str:
    return current_app.config.get("LOGIN_RATE_LIMIT", "10 per minute")


@auth_bp.route('/login', methods=['POST'])
@limiter.limit(_login_rate_limit)
def login():
    """Start a session for one of the configured portal accounts."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    username = clean_text(data.get('username')) or ''
    role = (clean_text(data.get('role')) or '').lower()

    if role not in ROLES:
        return jsonify({"ok": False, "error": "Unknown role"}), 400
    expected_user = current_app.config.get(f"{role.upper()}_USERNAME", "")
    if not check_credentials(expected_user, _stored_password(role), username, data.get('password')):
        current_app.logger.warning("Failed %s login for %r", role, username)
        return jsonify({"ok": False, "error": "Invalid credentials"}), 401

    session.clear()
    session.permanent = True
    session['logged_in'] = True
    session['role'] = role
    session['username'] = username
    current_app.logger.info("%s %r logged in", role, username)
    return jsonify({"ok": True, "role": role})


@auth_bp.route('/session', methods=['GET'])
def session_status():
    role = current_role()
    return jsonify({"authorized": role is not None, "role": role})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({"ok": True})


@auth_bp.route('/change-password', methods=['POST'])
@role_required()
def change_password():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    role = current_role()
    current_password = data.get('currentPassword') or ''
    new_password = data.get('newPassword') or ''

    if not verify_password(_stored_password(role), current_password):
        return jsonify({"ok": False, "error": "Current password is incorrect"}), 400
    problems = password_problems(new_password)
    if problems:
        return jsonify({"ok": False, "error": problems[0], "problems": problems}), 400

    set_setting(_password_key(role), hash_password(new_password))
    current_app.logger.info("Password changed for %s", role)
    return jsonify({"ok": True, "message": "Password updated successfully"})
