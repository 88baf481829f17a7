from __future__ import annotations

import re
import threading
import time
from functools import cmp_to_key
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from collectors.entry import Entry

_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)


def _int_key(s: str) -> Tuple[int, int, str]:
    """
    (sign, digit count, digits) for a plain integer string, without int().

    int() refuses strings longer than sys.get_int_max_str_digits().
    """
    mag = s.lstrip("+-").lstrip("0")
    if not mag:
        return (0, 0, "")
    return (-1 if s.startswith("-") else 1, len(mag), mag)


def compare_ints(a: str, b: str) -> int:
    sa, la, ma = _int_key(a)
    sb, lb, mb = _int_key(b)
    if sa != sb:
        return -1 if sa < sb else 1
    if (la, ma) == (lb, mb):
        return 0
    # larger magnitude is smaller when negative
    return sa if (la, ma) > (lb, mb) else -sa


def compare_periods(a: str, b: str) -> int:
    """
    Three-way compare of two period ids.

    Integer compare when both are plain integers (any length), string
    compare otherwise. Numerically equal ids ("0123" vs "123") fall back to the
    string compare so the order stays strict.

    Mixing numeric and non-numeric ids is not transitive: "10" > "9" > "1a" > "10".
    A cache fed such a mix is ordered by whatever sorted() makes of it; an
    all-numeric or all-non-numeric cache is always totally ordered.
    """
    if _INT_RE.fullmatch(a) and _INT_RE.fullmatch(b):
        c = compare_ints(a, b)
        if c:
            return c
    if a == b:
        return 0
    return -1 if a < b else 1


_PERIOD_KEY = cmp_to_key(compare_periods)


def sort_newest_first(entries: Iterable[Entry]) -> List[Entry]:
    return sorted(entries, key=lambda e: _PERIOD_KEY(e.period), reverse=True)


class RollingCache:
    """
    Bounded, deduplicated, newest-first buffer of recent entries.

    Two independent eviction policies, each disabled with None:
      - capacity: keep only the newest N periods
      - retention_seconds: drop entries admitted longer ago than this

    Concurrency:
      Writers (merge / prune) serialize on a lock and publish a brand new tuple.
      Readers grab the current tuple reference without locking, so they see
      either the state before a merge or after it, never a half-applied one.

    Non-responsibilities:
      - Fetching or mapping records
      - Persistence across restarts
    """

    def __init__(
        self,
        capacity: Optional[int] = 21,
        retention_seconds: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if capacity is None and retention_seconds is None:
            raise ValueError("RollingCache needs a capacity, a retention window, or both")
        if capacity is not None and capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity!r}")
        if retention_seconds is not None and retention_seconds <= 0:
            raise ValueError(f"retention_seconds must be positive, got {retention_seconds!r}")

        self.capacity = capacity
        self.retention_ms = int(retention_seconds * 1000) if retention_seconds is not None else None
        self._clock = clock

        self._lock = threading.Lock()
        self._entries: Tuple[Entry, ...] = ()
        self._last_update_ms: Optional[int] = None

    # -------------------------
    # Helpers
    # -------------------------
    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_fresh(self, entry: Entry, now_ms: int) -> bool:
        return self.retention_ms is None or now_ms - entry.timestamp_ms <= self.retention_ms

    def _apply_policies(self, entries: List[Entry], now_ms: int) -> List[Entry]:
        ordered = sort_newest_first(entries)
        if self.retention_ms is not None:
            ordered = [e for e in ordered if self._is_fresh(e, now_ms)]
        if self.capacity is not None:
            ordered = ordered[: self.capacity]
        return ordered

    # -------------------------
    # Writers
    # -------------------------
    def merge(self, entries: Iterable[Entry]) -> int:
        """
        Admit entries whose period is not cached yet, then re-sort, cap and age-prune.

        Re-seeing a period is a no-op (the first admitted entry is kept).
        Returns the number of newly admitted entries that survived eviction.
        """
        batch = list(entries)
        now_ms = self.now_ms()

        with self._lock:
            current = self._entries
            seen = {e.period for e in current}
            candidates = list(current)
            admitted = set()

            for e in batch:
                if e.period in seen:
                    continue
                seen.add(e.period)
                admitted.add(e.period)
                candidates.append(e)

            result = self._apply_policies(candidates, now_ms)
            self._entries = tuple(result)

            if batch:
                self._last_update_ms = now_ms

        return sum(1 for e in result if e.period in admitted)

    def prune(self, now_ms: Optional[int] = None) -> int:
        """
        Standalone age-prune pass. Returns the number of entries removed.
        """
        if self.retention_ms is None:
            return 0
        now_ms = self.now_ms() if now_ms is None else now_ms

        with self._lock:
            current = self._entries
            kept = tuple(e for e in current if self._is_fresh(e, now_ms))
            self._entries = kept

        return len(current) - len(kept)

    # -------------------------
    # Readers
    # -------------------------
    def snapshot(self) -> Tuple[Entry, ...]:
        """Newest-first, immutable view of the cache at call time."""
        return self._entries

    def values(self) -> List[int]:
        """Newest-first numeric projection of the current snapshot."""
        return [e.number for e in self._entries]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    @property
    def last_update_ms(self) -> Optional[int]:
        return self._last_update_ms

    def __len__(self) -> int:
        return len(self._entries)

    def to_dataframe(self):
        """
        Notebook convenience. Returns a pandas DataFrame, newest period first.
        """
        import pandas as pd
        df = pd.DataFrame(self.to_dicts(), columns=["period", "number", "isBig", "label", "timestamp"])
        if not df.empty:
            df["admitted_at"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True)
        return df
