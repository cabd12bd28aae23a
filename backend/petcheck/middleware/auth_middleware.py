"""
Authentication middleware – optional JWT bearer tokens.
Every endpoint is usable anonymously. When an Authorization header is
present it must carry a valid HS256 token; malformed or expired tokens are
rejected so a client never silently falls back to anonymous access.
"""

from flask import request, g, jsonify
import jwt as pyjwt

from petcheck.config import Config
from petcheck.utils.api import AppError, ERROR_CODES, error_response


def _reject(code: str, message: str):
    return jsonify(error_response(AppError(ERROR_CODES[code], message, 401))), 401


def optional_jwt_middleware():
    """Before-request hook: decodes a bearer token when one is supplied."""
    g.current_user_id = None
    if request.method == "OPTIONS" or not request.path.startswith("/api/"):
        return None

    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return None
    if not auth_header.startswith("Bearer "):
        return _reject("INVALID_TOKEN", "Invalid Authorization header.")

    token = auth_header.split(" ", 1)[1].strip()
    try:
        payload = pyjwt.decode(token, Config.JWT_SECRET, algorithms=["HS256"])
    except pyjwt.ExpiredSignatureError:
        return _reject("TOKEN_EXPIRED", "Token has expired.")
    except pyjwt.InvalidTokenError:
        return _reject("INVALID_TOKEN", "Invalid token.")

    user_id = payload.get("sub") or payload.get("user_id")
    g.current_user_id = str(user_id) if user_id is not None else None
    return None


def get_current_user_id():
    """Convenience accessor for the authenticated user, None when anonymous."""
    return getattr(g, "current_user_id", None)
