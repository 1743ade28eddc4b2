# tracklet/utils/helpers.py
from datetime import datetime, time, timedelta, timezone

from flask import g, request


def make_log_tag(file, resource, method, **kwargs):
    user = g.get("current_user") or {}
    log_tag = (
        f"[{file}]"
        f"[{resource}]"
        f"[{method}]"
        f"[ip:{request.remote_addr}]"
        f"[user:{user.get('user_id') or user.get('sub')}]"
        f"[role:{user.get('account_type')}]"
    )

    # Append extra context fields
    for key, value in kwargs.items():
        log_tag += f"[{key}:{value}]"

    return log_tag


def range_start(value):
    """A bare day starts at its midnight; timestamps are kept as sent."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def range_end(value):
    """A bare day runs to its last microsecond; timestamps are kept as sent."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value + timedelta(days=1), time.min) - timedelta(microseconds=1)


def as_utc(value):
    """Treat naive datetimes from query strings as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


