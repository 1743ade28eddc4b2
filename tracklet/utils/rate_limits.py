# tracklet/utils/rate_limits.py

from flask import g
from flask_limiter.util import get_remote_address

from .extensions import limiter


def user_key_func():
    """Rate-limit per authenticated user, falling back to the client IP."""
    user = g.get("current_user") or {}
    user_id = user.get("user_id") or user.get("sub")
    if user_id is not None:
        return f"user:{user_id}"
    return get_remote_address()


def crud_read_limiter(entity_name: str, limit_str: str = "60 per minute", scope: str | None = None):
    """Limiter for GET endpoints, e.g. crud_read_limiter("tank")."""
    return limiter.shared_limit(
        limit_str,
        scope=scope or f"{entity_name}-read",
        key_func=user_key_func,
        methods=["GET"],
        error_message=f"Too many {entity_name} read requests. Please slow down.",
    )


def crud_write_limiter(entity_name: str, limit_str: str = "30 per minute; 500 per hour", scope: str | None = None):
    """Limiter for POST/PUT endpoints."""
    return limiter.shared_limit(
        limit_str,
        scope=scope or f"{entity_name}-write",
        key_func=user_key_func,
        methods=["POST", "PUT", "PATCH"],
        error_message=f"Too many {entity_name} write requests. Please slow down.",
    )


def crud_delete_limiter(entity_name: str, limit_str: str = "10 per minute; 100 per hour", scope: str | None = None):
    """Limiter for DELETE endpoints."""
    return limiter.shared_limit(
        limit_str,
        scope=scope or f"{entity_name}-delete",
        key_func=user_key_func,
        methods=["DELETE"],
        error_message=f"Too many {entity_name} delete requests. Please slow down.",
    )


def stock_deduct_limiter(limit_str: str = "120 per minute"):
    """Deductions are driven by order fulfilment, so they get a wider budget per user."""
    return limiter.shared_limit(
        limit_str,
        scope="stock-deduct",
        key_func=user_key_func,
        methods=["POST"],
        error_message="Too many stock deduction requests. Please slow down.",
    )
