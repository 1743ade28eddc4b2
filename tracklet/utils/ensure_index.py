# tracklet/utils/ensure_index.py
from pymongo import IndexModel
from pymongo.errors import OperationFailure

from .logger import Log

INDEX_OPTIONS_CONFLICT = 85


def _norm_keys(keys):
    """
    Normalize index key specs into a comparable tuple. Handles
    [("a", 1), ("b", -1)], SON / dict key documents and text / hashed keys.
    """
    if hasattr(keys, "items"):
        keys = list(keys.items())
    out = []
    for pair in keys:
        if isinstance(pair, (tuple, list)) and len(pair) == 2:
            k, v = pair
        else:
            out.append(str(pair))
            continue
        v = int(v) if isinstance(v, (int, float)) else str(v)
        out.append((str(k), v))
    return tuple(out)


def _same_options(existing: dict, desired: dict) -> bool:
    return (
        bool(existing.get("unique", False)) == bool(desired.get("unique", False)) and
        existing.get("expireAfterSeconds") == desired.get("expireAfterSeconds") and
        bool(existing.get("sparse", False)) == bool(desired.get("sparse", False))
    )


def _drop_same_keys(col, desired_keys):
    for idx in col.list_indexes():
        if idx["name"] != "_id_" and _norm_keys(idx["key"]) == desired_keys:
            col.drop_index(idx["name"])


def ensure_index(col, model: IndexModel):
    """
    Reconcile one index on `col` idempotently.

    An index with the same keys and options is left alone; one with the same
    keys but different options or name is dropped and recreated. A concurrent
    IndexOptionsConflict is resolved by dropping by key pattern and retrying once.
    """
    desired = model.document
    desired_keys = _norm_keys(desired["key"])
    desired_name = desired.get("name")

    for idx in col.list_indexes():
        if idx["name"] == "_id_" or _norm_keys(idx["key"]) != desired_keys:
            continue
        if _same_options(idx, desired) and (desired_name is None or idx["name"] == desired_name):
            return
        Log.info(f"[ensure_index.py][ensure_index] Replacing index {idx['name']} on {col.name}")
        col.drop_index(idx["name"])
        break

    try:
        col.create_indexes([model])
    except OperationFailure as e:
        if getattr(e, "code", None) != INDEX_OPTIONS_CONFLICT:
            raise
        _drop_same_keys(col, desired_keys)
        col.create_indexes([model])
