import pytest

from predictors.windows import WINDOWS, compute_all_predictions, window_prediction
from tests.conftest import make_entry


def entries_from(values):
    """Newest-first entries with descending periods."""
    n = len(values)
    return [make_entry(n - i, v) for i, v in enumerate(values)]


class TestWindowPrediction:

    def test_all_big_prefix(self):
        p = window_prediction(entries_from([9, 8, 7, 6, 5]), 5, block=2)
        assert p == {"block": 2, "window": 5, "ready": True, "prediction": "BIG", "big": 5, "small": 0}

    def test_counts_only_the_prefix(self):
        p = window_prediction(entries_from([0, 1, 2, 9, 9, 9, 9]), 5, block=1)
        assert (p["big"], p["small"], p["prediction"]) == (2, 3, "SMALL")

    def test_not_ready_waits_but_reports_partial_counts(self):
        p = window_prediction(entries_from([9, 9, 1]), 5, block=1)
        assert p["ready"] is False
        assert p["prediction"] == "Waiting…"
        assert (p["big"], p["small"]) == (2, 1)

    def test_tie_follows_newest(self):
        assert window_prediction(entries_from([1, 9]), 2, block=1)["prediction"] == "SMALL"
        assert window_prediction(entries_from([9, 1]), 2, block=1)["prediction"] == "BIG"

    def test_window_one(self):
        assert window_prediction(entries_from([6]), 1, block=1)["prediction"] == "BIG"

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            window_prediction([], 0, block=1)


class TestComputeAll:

    def test_blocks_follow_windows(self):
        rows = compute_all_predictions(entries_from([9] * 21))
        assert [r["window"] for r in rows] == list(WINDOWS)
        assert [r["block"] for r in rows] == list(range(1, len(WINDOWS) + 1))
        assert all(r["ready"] and r["prediction"] == "BIG" for r in rows)

    def test_empty_cache(self):
        rows = compute_all_predictions([])
        assert all(not r["ready"] and r["big"] == 0 and r["small"] == 0 for r in rows)

    def test_readiness_tracks_history_length(self):
        rows = compute_all_predictions(entries_from([3] * 9))
        ready = {r["window"]: r["ready"] for r in rows}
        assert ready[9] is True
        assert ready[11] is False
