# security/auth.py
from functools import wraps

import jwt
from flask import current_app, g, request

from ..constants.service_code import AUTHENTICATION_MESSAGES
from ..utils.json_response import prepared_response
from ..utils.logger import Log


def _decode(token):
    return jwt.decode(
        token,
        current_app.config["SECRET_KEY"],
        algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
    )


def token_required(f):
    """
    Require a bearer token signed with SECRET_KEY.

    The decoded claims are exposed as g.current_user; issuing tokens is the
    job of the account service.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        log_tag = f"[auth.py][token_required][{request.remote_addr}][{request.path}]"
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            Log.info(f"{log_tag} Missing bearer token")
            return prepared_response(
                status=False,
                status_code="UNAUTHORIZED",
                message=AUTHENTICATION_MESSAGES["AUTHENTICATION_REQUIRED"],
            )

        token = auth_header.split()[1] if len(auth_header.split()) > 1 else ""
        try:
            claims = _decode(token)
        except jwt.ExpiredSignatureError:
            Log.info(f"{log_tag} Token expired")
            return prepared_response(
                status=False,
                status_code="UNAUTHORIZED",
                message=AUTHENTICATION_MESSAGES["TOKEN_EXPIRED"],
            )
        except jwt.InvalidTokenError as e:
            Log.info(f"{log_tag} Invalid token: {str(e)}")
            return prepared_response(
                status=False,
                status_code="UNAUTHORIZED",
                message=AUTHENTICATION_MESSAGES["INVALID_TOKEN"],
            )

        g.current_user = claims
        return f(*args, **kwargs)
    return decorated


def current_user_id():
    user = g.get("current_user") or {}
    return user.get("user_id") or user.get("sub")
