# tracklet/utils/extensions.py

import os
from flask import request, g, has_request_context
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .logger import Log


RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")


def _get_client_ip():
    """Safely get client IP, returns 'unknown' if outside request context."""
    if has_request_context():
        return get_remote_address() or "unknown"
    return "unknown"


def _format_time_period(seconds):
    """Convert seconds to human-readable format."""
    if seconds is None:
        return "unknown"

    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    if seconds < 3600:
        minutes = seconds // 60
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    hours = seconds // 3600
    return f"{hours} hour{'s' if hours != 1 else ''}"


def log_rate_limit_breach(request_limit):
    """Called by Flask-Limiter whenever any limit is exceeded."""
    client_ip = _get_client_ip()
    user = g.get("current_user") or {}
    user_id = user.get("user_id") or user.get("sub") or "anonymous"

    try:
        limit_str = f"{request_limit.limit.amount} per {_format_time_period(request_limit.limit.get_expiry())}"
    except AttributeError:
        limit_str = str(getattr(request_limit, "limit", "unknown"))

    Log.warning(
        f"[RATE_LIMIT_BREACH][{client_ip}] "
        f"user={user_id}, limit={limit_str}, key={getattr(request_limit, 'key', 'unknown')}, "
        f"method={request.method}, path={request.path}, endpoint={request.endpoint or 'unknown'}"
    )


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "500 per hour"],
    storage_uri=RATE_LIMIT_STORAGE_URI,
    on_breach=log_rate_limit_breach,
)
