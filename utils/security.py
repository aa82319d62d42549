"""Portal account credentials.

Passwords come from the environment (plain or Werkzeug-hashed) until a user
changes theirs through ``/auth/change-password``; from then on the hash kept
in ``app_settings`` is used.
"""
from __future__ import annotations

import hmac
from typing import Optional

from werkzeug.security import generate_password_hash, check_password_hash

HASH_METHOD = "pbkdf2:sha256"
HASH_PREFIXES = ("pbkdf2:", "scrypt:")


def hash_password(plain: str, method: str = HASH_METHOD, salt_length: int = 16) -> str:
    return generate_password_hash(plain or "", method=method, salt_length=salt_length)


def is_hashed(value: Optional[str]) -> bool:
    return bool(value) and str(value).startswith(HASH_PREFIXES)


def _same_text(expected: str, given: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), given.encode("utf-8"))


def verify_password(stored_value: Optional[str], candidate: Optional[str]) -> bool:
    """Check ``candidate`` against a configured password.

    An empty stored value never matches, so an unset password disables that
    login. Non-text candidates never match.
    """
    if not stored_value or not isinstance(candidate, str):
        return False
    if is_hashed(stored_value):
        try:
            return check_password_hash(stored_value, candidate)
        except ValueError:
            return False
    return _same_text(stored_value, candidate)


def check_credentials(expected_user: Optional[str], stored_password: Optional[str],
                      username: object, password: object) -> bool:
    """True when ``username``/``password`` match one configured account.

    Both halves are always evaluated so a wrong username costs the same as a
    wrong password.
    """
    if not expected_user or not isinstance(username, str):
        return False
    user_ok = _same_text(expected_user, username.strip())
    password_ok = verify_password(stored_password, password if isinstance(password, str) else None)
    return user_ok and password_ok
