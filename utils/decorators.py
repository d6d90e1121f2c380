from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from api.errors import service_error_response

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def login_required():
    """
    Run the AuthorizationGate in front of a view. On success the sanitized
    principal is available as g.current_user; otherwise the view never runs
    and the client gets a 401.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            gate = current_app.extensions["authorization_gate"]
            result = gate.authenticate(
                cookie_token=request.cookies.get(ACCESS_COOKIE),
                authorization=request.headers.get("Authorization", ""),
            )
            if not result.ok:
                return service_error_response(result.error)

            g.current_user = result.value
            return fn(*args, **kwargs)

        return wrapper

    return decorator
