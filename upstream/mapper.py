# upstream/mapper.py
"""
Raw upstream record -> canonical Entry.

The upstream is not consistent about key names across deployments, so both the
identity ("period") and the value ("number") are looked up through prioritized
alias tables. The first alias holding a usable value wins.

This is the ONLY place where record-level schema knowledge should live.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from collectors.entry import Entry

# Identity aliases, highest priority first
PERIOD_FIELDS: Sequence[str] = (
    "issueNumber",
    "issue",
    "issueNo",
    "period",
    "periodNo",
    "expect",
    "drawNo",
    "drawId",
    "round",
)

# Value aliases, highest priority first
NUMBER_FIELDS: Sequence[str] = (
    "number",
    "result",
    "openNumber",
    "winNumber",
    "openCode",
    "num",
    "value",
)

# Plain decimal forms only; int() and float() also accept underscores and "infinity"
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def first_field(rec: Mapping[str, Any], fields: Sequence[str]) -> Any:
    """
    Return the value of the first alias present in rec with a non-empty value.

    None and blank strings count as absent, so a record carrying both
    {"issueNumber": "", "issue": "123"} resolves to "123".
    """
    for k in fields:
        v = rec.get(k)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None


def coerce_period(v: Any) -> Optional[str]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (dict, list, tuple, set)):
        return None
    if isinstance(v, float):
        if not math.isfinite(v):
            return None
        # 20250101.0 -> "20250101"
        if v.is_integer():
            v = int(v)
    s = str(v).strip()
    return s or None


def coerce_number(v: Any) -> Optional[int]:
    """
    Parse an upstream value into a non-negative integer, or None.

    Accepts ints, finite floats (truncated) and numeric strings. Comma separated
    draw codes such as "3,5,8" use their first element.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return abs(v)
    if isinstance(v, float):
        if not math.isfinite(v):
            return None
        return abs(int(v))
    if isinstance(v, str):
        s = v.strip()
        if "," in s:
            s = s.split(",", 1)[0].strip()
        if not s:
            return None
        if _INT_RE.fullmatch(s):
            try:
                return abs(int(s))
            except ValueError:
                # longer than sys.get_int_max_str_digits()
                return None
        if not _FLOAT_RE.fullmatch(s):
            return None
        f = float(s)
        if not math.isfinite(f):
            return None
        return abs(int(f))
    return None


def map_record(raw: Any, *, admitted_ms: int) -> Optional[Entry]:
    """
    Convert one raw record into an Entry.

    Returns None if:
      - raw is not a dict
      - no identity alias yields a non-empty string
      - no value alias yields a finite number

    number = abs(value) % 10, so 104 -> 4.
    """
    if not isinstance(raw, Mapping):
        return None

    period = coerce_period(first_field(raw, PERIOD_FIELDS))
    if period is None:
        return None

    value = coerce_number(first_field(raw, NUMBER_FIELDS))
    if value is None:
        return None

    return Entry.create(period, value % 10, admitted_ms)


def map_records(raws: Iterable[Any], *, admitted_ms: int) -> List[Entry]:
    """Map a batch; rejected records are dropped."""
    out: List[Entry] = []
    for raw in raws:
        entry = map_record(raw, admitted_ms=admitted_ms)
        if entry is not None:
            out.append(entry)
    return out
