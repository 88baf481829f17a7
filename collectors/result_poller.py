"""
Draw-history polling service.

Runs fetch -> extract -> map -> merge on a fixed interval and keeps the rolling
cache current for the HTTP surface.

This module does NOT serve anything and does NOT compute predictions; readers
pull those from the cache on demand.
"""

import threading
from typing import Any, Dict, Optional

from collectors.rolling_cache import RollingCache
from upstream.client import UpstreamClient
from upstream.extract import extract_records
from upstream.mapper import map_records


class ResultPoller:
    """
    Fixed-interval poller with a busy flag.

    Responsibilities:
    - Run one cycle at startup, then one per interval
    - Skip (never queue) a tick that lands while a cycle is still in flight
    - Leave the cache untouched when a cycle produces nothing usable

    Non-responsibilities:
    - Retry / backoff (the next tick is the retry)
    - Draining in-flight fetches on shutdown
    """

    def __init__(self, client: UpstreamClient, cache: RollingCache, interval: float):
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval!r}")

        self.client = client
        self.cache = cache
        self.interval = interval

        self._busy = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._stats_lock = threading.Lock()
        self._stats = {"cycles": 0, "ok": 0, "failed": 0, "skipped": 0}
        self._last_error: Optional[str] = None

    # -------------------------
    # Helpers
    # -------------------------
    def _bump(self, key: str, error: Optional[str] = None) -> None:
        with self._stats_lock:
            self._stats[key] += 1
            if key == "failed":
                self._last_error = error
            elif key == "ok":
                self._last_error = None

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def stats(self) -> Dict[str, Any]:
        last = self.client.last_result
        with self._stats_lock:
            out = dict(self._stats)
            out["lastError"] = self._last_error
        out["lastStatus"] = last.status if last is not None else None
        out["busy"] = self.busy
        return out

    # -------------------------
    # One cycle
    # -------------------------
    def _cycle(self) -> bool:
        with self._stats_lock:
            self._stats["cycles"] += 1

        result = self.client.fetch()
        if not result.ok:
            print(f"[POLLER][WARN] upstream status={result.status} err={result.error}; cache unchanged")
            self._bump("failed", result.error or f"HTTP {result.status}")
            return False

        raws = extract_records(result.body)
        if not raws:
            print("[POLLER][WARN] no records found in upstream body; cache unchanged")
            self._bump("failed", "no records in body")
            return False

        entries = map_records(raws, admitted_ms=self.cache.now_ms())
        if not entries:
            print(f"[POLLER][WARN] none of {len(raws)} records mapped; cache unchanged")
            self._bump("failed", "no mappable records")
            return False

        added = self.cache.merge(entries)
        self._bump("ok")

        print(
            f"[POLLER] fetched={len(raws)} mapped={len(entries)} "
            f"added={added} size={len(self.cache)} status={result.status}"
        )
        return True

    def run_once(self) -> bool:
        """
        Run one cycle unless another one is in flight.

        Returns True if the cache was updated from fresh data.
        """
        if not self._busy.acquire(blocking=False):
            self._bump("skipped")
            print("[POLLER] previous cycle still running; tick skipped")
            return False

        try:
            return self._cycle()
        except Exception as exc:
            # a bad cycle must never kill the service
            err = f"{type(exc).__name__}: {exc}"
            print(f"[POLLER][WARN] cycle failed: {err}")
            self._bump("failed", err)
            return False
        finally:
            self._busy.release()

    # -------------------------
    # Main loop (ticker)
    # -------------------------
    def _dispatch(self) -> None:
        threading.Thread(target=self.run_once, name="poll-cycle", daemon=True).start()

    def _run_forever(self) -> None:
        self._dispatch()
        while not self._stop.wait(self.interval):
            self._dispatch()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_forever, name="poll-ticker", daemon=True)
        self._thread.start()
        print(f"[POLLER] started interval={self.interval}s url={self.client.url}")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        print("[POLLER] stopped")
