from __future__ import annotations

from typing import Any, Dict, List, Sequence

from collectors.entry import BIG, SMALL, Entry
from predictors.heuristics import WAITING

WINDOWS: Sequence[int] = (1, 5, 7, 9, 11, 13, 15, 17, 19, 21)


def window_prediction(entries: Sequence[Entry], window: int, block: int) -> Dict[str, Any]:
    """
    Big/small majority over exactly the newest `window` entries.

    Counts are reported over whatever part of the prefix exists, but the
    prediction only resolves once the window is full. A tie (even windows)
    follows the newest entry.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window!r}")

    prefix = entries[:window]
    big = sum(1 for e in prefix if e.is_big)
    small = len(prefix) - big
    ready = len(entries) >= window

    if not ready:
        prediction = WAITING.label
    elif big > small:
        prediction = BIG
    elif small > big:
        prediction = SMALL
    else:
        prediction = prefix[0].label

    return {
        "block": block,
        "window": window,
        "ready": ready,
        "prediction": prediction,
        "big": big,
        "small": small,
    }


def compute_all_predictions(entries: Sequence[Entry], windows: Sequence[int] = WINDOWS) -> List[Dict[str, Any]]:
    return [window_prediction(entries, w, block) for block, w in enumerate(windows, start=1)]
