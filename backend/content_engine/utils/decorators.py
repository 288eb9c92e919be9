from functools import wraps
from typing import Optional

from flask_jwt_extended import get_jwt, verify_jwt_in_request

from content_engine.domain.invariants.exceptions import AuthorizationError


def roles_required(*allowed_roles):
    """Reject verified tokens whose role claim is not one of allowed_roles."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            role = get_jwt().get("role")

            if role not in allowed_roles:
                raise AuthorizationError(
                    "Insufficient permissions",
                    reason="insufficient_role",
                    status_code=403,
                )

            return fn(*args, **kwargs)
        return wrapper
    return decorator


def current_role() -> Optional[str]:
    """
    Role of the caller on endpoints where a token is optional. Anonymous
    callers get None; a malformed or expired token is still rejected.
    """
    if verify_jwt_in_request(optional=True) is None:
        return None
    return get_jwt().get("role")


def is_admin() -> bool:
    return current_role() == "admin"
