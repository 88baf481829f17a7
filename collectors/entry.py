from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

BIG = "BIG"
SMALL = "SMALL"
BIG_THRESHOLD = 5


def size_label(number: int) -> str:
    return BIG if number >= BIG_THRESHOLD else SMALL


@dataclass(frozen=True)
class Entry:
    """
    Canonical representation of ONE result round.

    Entries are produced by the mapper from raw upstream records and are never
    mutated afterwards; the rolling cache only ever replaces its tuple of them.

    Invariants:
      - period is a non-empty string and the cache's unique key
      - 0 <= number <= 9
      - is_big == (number >= 5), label agrees with is_big
      - timestamp_ms is the epoch-ms instant the entry was admitted
    """

    period: str
    number: int
    is_big: bool
    label: str
    timestamp_ms: int

    @classmethod
    def create(cls, period: str, number: int, timestamp_ms: int) -> "Entry":
        """Build an entry, deriving size fields from the number."""
        if not period:
            raise ValueError("period must be a non-empty string")
        if not 0 <= number <= 9:
            raise ValueError(f"number must be in [0, 9], got {number!r}")
        return cls(
            period=period,
            number=number,
            is_big=number >= BIG_THRESHOLD,
            label=size_label(number),
            timestamp_ms=int(timestamp_ms),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape served to the browser front end."""
        return {
            "period": self.period,
            "number": self.number,
            "isBig": self.is_big,
            "label": self.label,
            "timestamp": self.timestamp_ms,
        }
