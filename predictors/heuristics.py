# predictors/heuristics.py
"""
Statistical toy heuristics over the newest-first value history.

Every heuristic:
- takes history as a newest-first sequence of ints in [0, 9]
- returns WAITING when fewer than its minimum number of values exist
- is deterministic: same history, same Prediction

None of these forecast anything. They are kept because the front end shows them.
"""

from __future__ import annotations

import functools
import math
import statistics
from typing import Any, Callable, Dict, List, NamedTuple, Sequence, Tuple

from collectors.entry import size_label


class Prediction(NamedTuple):
    label: str
    tier: str


WAITING = Prediction("Waiting…", "wait")

LOW = "low"
MID = "mid"
HIGH = "high"


def round_half_up(x: float) -> int:
    """2.5 -> 3, unlike round() which rounds half to even."""
    return int(math.floor(x + 0.5))


def digit_label(d: int) -> str:
    return f"{d} {size_label(d)}"


def stddev_tier(values: Sequence[int]) -> str:
    sd = statistics.pstdev(values)
    if sd < 2:
        return HIGH
    if sd < 3.5:
        return MID
    return LOW


def sticky_mode_of(values: Sequence[int]) -> Tuple[int, int]:
    """
    Most frequent value and its count.

    Ties go to the tied value seen most recently (lowest index).
    """
    counts: Dict[int, int] = {}
    for v in values:
        counts[v] = counts.get(v, 0) + 1
    best = max(counts.values())
    for v in values:
        if counts[v] == best:
            return v, best
    raise ValueError("sticky_mode_of requires a non-empty sequence")


def _gated(min_history: int):
    def wrap(fn: Callable[[Sequence[int]], Prediction]):
        @functools.wraps(fn)
        def inner(history: Sequence[int]) -> Prediction:
            if len(history) < min_history:
                return WAITING
            return fn(history)
        inner.min_history = min_history
        return inner
    return wrap


# -------------------------
# Heuristics (ordered by minimum history)
# -------------------------
@_gated(4)
def offset_blend(h: Sequence[int]) -> Prediction:
    """Fixed-offset blend of positions 0, 1 and 3."""
    d = round_half_up(0.5 * h[0] + 0.3 * h[1] + 0.2 * h[3]) % 10
    return Prediction(digit_label(d), MID)


@_gated(5)
def momentum(h: Sequence[int]) -> Prediction:
    """Rounded mean of the last five values."""
    window = h[:5]
    d = round_half_up(statistics.mean(window)) % 10
    spread = max(window) - min(window)
    tier = HIGH if spread <= 2 else MID if spread <= 5 else LOW
    return Prediction(digit_label(d), tier)


@_gated(6)
def parity_vote(h: Sequence[int]) -> Prediction:
    window = h[:6]
    odd = sum(1 for v in window if v % 2)
    even = len(window) - odd
    if odd == even:
        return Prediction("ODD" if h[0] % 2 else "EVEN", LOW)
    margin = abs(odd - even)
    tier = HIGH if margin >= 4 else MID if margin >= 2 else LOW
    return Prediction("ODD" if odd > even else "EVEN", tier)


@_gated(7)
def sticky_mode(h: Sequence[int]) -> Prediction:
    v, count = sticky_mode_of(h[:7])
    tier = HIGH if count >= 3 else MID if count == 2 else LOW
    return Prediction(digit_label(v), tier)


@_gated(8)
def variance_swing(h: Sequence[int]) -> Prediction:
    """
    Volatile window (stddev >= 3): mirror the newest value.
    Calm window: follow the rounded mean.
    """
    window = h[:8]
    if statistics.pstdev(window) >= 3:
        d = 9 - h[0]
    else:
        d = round_half_up(statistics.mean(window)) % 10
    return Prediction(digit_label(d), stddev_tier(window))


@_gated(9)
def median_value(h: Sequence[int]) -> Prediction:
    window = h[:9]
    d = int(statistics.median(window))
    return Prediction(digit_label(d), stddev_tier(window))


@_gated(10)
def prefix_average_trend(h: Sequence[int]) -> Prediction:
    """Compare the mean of the newest five against the five before them."""
    recent = statistics.mean(h[:5])
    older = statistics.mean(h[5:10])
    delta = recent - older
    if delta > 0:
        label = "BIG"
    elif delta < 0:
        label = "SMALL"
    else:
        label = size_label(round_half_up(recent))
    gap = abs(delta)
    tier = HIGH if gap >= 1.5 else MID if gap >= 0.5 else LOW
    return Prediction(label, tier)


@_gated(10)
def range_bucket_inverse(h: Sequence[int]) -> Prediction:
    """Majority bucket (0-4 vs 5-9) of the last ten, suggesting the other one."""
    window = h[:10]
    high = sum(1 for v in window if v >= 5)
    low = len(window) - high
    if high == low:
        majority_high = h[0] >= 5
    else:
        majority_high = high > low
    margin = abs(high - low)
    tier = HIGH if margin >= 6 else MID if margin >= 2 else LOW
    return Prediction("SMALL" if majority_high else "BIG", tier)


@_gated(12)
def mode_offset(h: Sequence[int]) -> Prediction:
    v, _ = sticky_mode_of(h[:12])
    return Prediction(digit_label((v + 3) % 10), LOW)


@_gated(21)
def weighted_moving_average(h: Sequence[int]) -> Prediction:
    """Linear weights 21..1 over the last 21 values, newest heaviest."""
    window = h[:21]
    n = len(window)
    weights = range(n, 0, -1)
    wma = sum(w * v for w, v in zip(weights, window)) / (n * (n + 1) / 2)
    d = round_half_up(wma) % 10
    return Prediction(digit_label(d), stddev_tier(window))


HEURISTICS: List[Tuple[str, int, Callable[[Sequence[int]], Prediction]]] = [
    (fn.__name__, fn.min_history, fn)
    for fn in (
        offset_blend,
        momentum,
        parity_vote,
        sticky_mode,
        variance_swing,
        median_value,
        prefix_average_trend,
        range_bucket_inverse,
        mode_offset,
        weighted_moving_average,
    )
]


def run_all(history: Sequence[int]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for name, min_history, fn in HEURISTICS:
        p = fn(history)
        out.append({
            "name": name,
            "minHistory": min_history,
            "prediction": p.label,
            "tier": p.tier,
        })
    return out
