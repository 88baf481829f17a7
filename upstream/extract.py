# upstream/extract.py
"""
Locate the list of result records inside an arbitrary upstream envelope.

Known shapes are checked first, in priority order; if none match, every
list-of-dicts value in the payload is scanned (breadth-first) and the first one
whose elements carry a recognizable identity field is used.

Contract: never raises. Returns [] if nothing usable is found.
"""

from __future__ import annotations

import json
from collections import deque
from typing import Any, Dict, List, Optional, Sequence, Tuple

from upstream.mapper import PERIOD_FIELDS

# (container key, list key); container None means top level
KNOWN_SHAPES: Sequence[Tuple[Optional[str], Optional[str]]] = (
    ("data", "list"),
    ("data", "List"),
    ("data", "records"),
    ("data", "rows"),
    ("Data", "list"),
    ("Data", "List"),
    ("data", None),
    ("Data", None),
    (None, "list"),
    (None, "List"),
    (None, "records"),
    (None, "rows"),
)

# How deep the heuristic scan descends into nested objects
MAX_SCAN_DEPTH = 4


def _dicts_only(items: List[Any]) -> List[Dict[str, Any]]:
    return [x for x in items if isinstance(x, dict)]


def _looks_like_records(items: Any) -> bool:
    """True if items is a list containing at least one dict with an identity alias."""
    if not isinstance(items, list):
        return False
    for x in items:
        if isinstance(x, dict) and any(k in x for k in PERIOD_FIELDS):
            return True
    return False


def _lookup(payload: Dict[str, Any], container: Optional[str], key: Optional[str]) -> Any:
    node: Any = payload
    if container is not None:
        node = node.get(container)
        if key is None:
            return node
        if not isinstance(node, dict):
            return None
    return node.get(key) if key is not None else None


def _scan(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Breadth-first search for the first list-of-records value."""
    queue: deque = deque([(payload, 0)])
    while queue:
        node, depth = queue.popleft()
        for v in node.values():
            if _looks_like_records(v):
                return _dicts_only(v)
            if isinstance(v, dict) and depth + 1 < MAX_SCAN_DEPTH:
                queue.append((v, depth + 1))
    return []


def extract_records(payload: Any) -> List[Dict[str, Any]]:
    """
    Return the result records carried by payload.

    Accepts an already-decoded JSON value or a raw text body (decoded here).
    Only dict elements are returned; anything else in the list is dropped.
    """
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except (ValueError, RecursionError):
            return []

    if isinstance(payload, list):
        return _dicts_only(payload)

    if not isinstance(payload, dict):
        return []

    for container, key in KNOWN_SHAPES:
        found = _lookup(payload, container, key)
        if isinstance(found, list) and found:
            records = _dicts_only(found)
            if records:
                return records

    return _scan(payload)
