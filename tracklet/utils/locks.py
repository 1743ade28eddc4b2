# tracklet/utils/locks.py
import threading
import weakref
from contextlib import contextmanager

from flask import current_app, has_app_context
from redis.exceptions import LockError

from ..extensions.db import redis_connection
from ..services.stock.errors import ConcurrentUpdateError
from .logger import Log

_registry_guard = threading.Lock()
# Entries drop out once no caller holds or waits on the lock
_local_locks = weakref.WeakValueDictionary()


def _local_lock(key):
    with _registry_guard:
        lock = _local_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _local_locks[key] = lock
        return lock


def _lock_settings():
    if has_app_context():
        return (
            float(current_app.config.get("STOCK_LOCK_TIMEOUT", 10)),
            float(current_app.config.get("STOCK_LOCK_WAIT", 5)),
        )
    return 10.0, 5.0


@contextmanager
def owner_lock(owner_id):
    """
    Serialize stock mutations for one owner.

    Uses a Redis lock when a connection is configured so every process shares
    the same critical section, otherwise a per-owner threading.Lock.
    """
    key = f"stock-lock:{owner_id}"
    timeout, wait = _lock_settings()
    log_tag = f"[locks.py][owner_lock][{owner_id}]"

    if redis_connection.connection is not None:
        lock = redis_connection.connection.lock(key, timeout=timeout, blocking_timeout=wait)
        try:
            acquired = lock.acquire()
        except LockError as e:
            Log.error(f"{log_tag} Redis lock error: {str(e)}")
            raise ConcurrentUpdateError(f"Stock for owner {owner_id} is busy, retry shortly")
        if not acquired:
            Log.warning(f"{log_tag} Timed out waiting for redis lock")
            raise ConcurrentUpdateError(f"Stock for owner {owner_id} is busy, retry shortly")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Lock expired while held; the version check on tank writes still applies
                Log.warning(f"{log_tag} Redis lock expired before release")
        return

    lock = _local_lock(key)
    if not lock.acquire(timeout=wait):
        Log.warning(f"{log_tag} Timed out waiting for local lock")
        raise ConcurrentUpdateError(f"Stock for owner {owner_id} is busy, retry shortly")
    try:
        yield
    finally:
        lock.release()
