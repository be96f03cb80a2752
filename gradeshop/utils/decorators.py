# ------- gradeshop/utils/decorators.py -------
from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from ..utils.api import api_error

ROLE_LEVEL = {"staff": 1, "admin": 2}

def role_at_least(min_role: str, message: str | None = None):  # admin > staff
    min_level = ROLE_LEVEL[min_role]
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                verify_jwt_in_request()
            except (JWTExtendedException, PyJWTError):
                return jsonify(api_error("Unauthorized")), 401
            role = get_jwt().get("role")
            if ROLE_LEVEL.get(role, 0) < min_level:
                return jsonify(api_error(message or "Forbidden")), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator

def admin_required(fn):
    return role_at_least("admin")(fn)
