from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar, Any, cast
from flask import session, jsonify

F = TypeVar("F", bound=Callable[..., Any])

ROLES = ("admin", "teacher")


def current_role() -> str | None:
    if not session.get("logged_in"):
        return None
    role = session.get("role")
    return role if role in ROLES else None


def role_required(*roles: str) -> Callable[[F], F]:
    """Decorator gating a view on the session role.

    - No session: 401 ``{"ok": false, "error": "Unauthorized"}``.
    - Session with another role: 403.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            role = current_role()
            if role is None:
                return jsonify({"ok": False, "error": "Unauthorized"}), 401
            if roles and role not in roles:
                return jsonify({"ok": False, "error": "Forbidden"}), 403
            return func(*args, **kwargs)

        return cast(F, wrapper)

    return decorator


admin_required = role_required("admin")
