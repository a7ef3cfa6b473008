"""In-process sliding-window rate limiter, one instance per app."""

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from config.config import RateLimitSettings

MINUTE = 60.0
HOUR = 3600.0


@dataclass(frozen=True)
class WindowLimit:
    max_requests: int
    window_s: float


class SlidingWindowRateLimiter:
    """
    Counts requests per (group, client) over a trailing window.

    Uses threading.Lock because sync FastAPI dependencies run in a threadpool.
    Clients whose window has emptied are dropped at most once per ``sweep_interval_s``.
    """

    def __init__(
        self,
        limits: dict[str, WindowLimit],
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_s: float = MINUTE,
    ):
        self._limits = dict(limits)
        self._clock = clock
        self._sweep_interval_s = sweep_interval_s
        self._hits: dict[tuple[str, str], deque[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: RateLimitSettings) -> "SlidingWindowRateLimiter":
        return cls(
            {
                "generation": WindowLimit(settings.generation_per_minute, MINUTE),
                "search": WindowLimit(settings.search_per_hour, HOUR),
                "scrape": WindowLimit(settings.scrape_per_hour, HOUR),
            }
        )

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._hits)

    @staticmethod
    def _prune(hits: deque[float], now: float, window_s: float):
        while hits and now - hits[0] >= window_s:
            hits.popleft()

    def _sweep(self, now: float):
        for key in list(self._hits):
            hits = self._hits[key]
            self._prune(hits, now, self._limits[key[0]].window_s)
            if not hits:
                del self._hits[key]
        self._last_sweep = now

    def check(self, group: str, client_key: str) -> float | None:
        """
        Record a request.

        Returns:
            None when allowed, otherwise seconds until the oldest hit leaves the window
        """
        limit = self._limits.get(group)
        if limit is None:
            return None

        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval_s:
                self._sweep(now)

            hits = self._hits.setdefault((group, client_key), deque())
            self._prune(hits, now, limit.window_s)
            if len(hits) >= limit.max_requests:
                return max(limit.window_s - (now - hits[0]), 0.0)
            hits.append(now)
            return None

    def reset(self):
        with self._lock:
            self._hits.clear()
