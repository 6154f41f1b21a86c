# permissions.py
"""
Role checks for the API.
- role_required([...]): main route decorator (ADMIN always passes).
- require_role(*roles): same thing, positional form.
- has_role / is_admin: plain helpers for use inside handlers.

Roles:
- STAFF: reads items and ledger, records transactions
- ADMIN: everything STAFF can do plus item writes, import, user management
"""

from functools import wraps
from typing import Iterable, Set

from flask import abort
from flask_login import current_user, login_required

from models import ROLE_ADMIN


def role_required(allowed_roles: Iterable[str]):
    """
    Restrict a view to the given roles.
    Example:
        @role_required(["STAFF"])
        def view(): ...

    - Anonymous → 401 through the login manager.
    - ADMIN always passes.
    - Any other role outside ``allowed_roles`` → 403.
    """
    if isinstance(allowed_roles, str):
        allowed: Set[str] = {allowed_roles}
    else:
        allowed = set(allowed_roles or [])

    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def wrapped(*args, **kwargs):
            role = getattr(current_user, "role", None)
            if role == ROLE_ADMIN or role in allowed:
                return view_func(*args, **kwargs)
            abort(403, description="You do not have permission to perform this action.")

        return wrapped
    return decorator


def require_role(*roles: str):
    """Positional form: ``@require_role("ADMIN")``."""
    return role_required(list(roles))


def has_role(role: str) -> bool:
    return bool(current_user.is_authenticated and getattr(current_user, "role", None) == role)


def is_admin() -> bool:
    return has_role(ROLE_ADMIN)
