"""
Fixed-window rate limiter for contact submissions.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import Request

from shared.errors import RateLimited
from shared.logging import get_logger
from shared.metrics import MetricsCollector

DEFAULT_PRUNE_THRESHOLD = 10_000


@dataclass
class RateWindow:
    """Counter state for one submitter address."""

    started_at: float
    count: int


class FixedWindowRateLimiter:
    """In-process fixed-window counter keyed by submitter address.

    A window opens on the first request from an address and lasts
    ``window_ms``. Bursts straddling a window boundary may see up to twice
    ``max_requests`` admitted within one wall-clock window.
    """

    def __init__(
        self,
        window_ms: int = 60_000,
        max_requests: int = 6,
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = DEFAULT_PRUNE_THRESHOLD,
    ):
        if window_ms <= 0 or max_requests <= 0:
            raise ValueError("window_ms and max_requests must be positive")
        self.window_seconds = window_ms / 1000.0
        self.max_requests = max_requests
        self.prune_threshold = prune_threshold
        self.logger = get_logger("contact.rate_limiter")
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    def check_rate_limit(self, client_id: str) -> Dict[str, Any]:
        """Count one request from ``client_id`` and decide whether to admit it."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(client_id)
            if window is None or self._expired(window, now):
                window = RateWindow(started_at=now, count=1)
                self._windows[client_id] = window
                allowed = True
            elif window.count < self.max_requests:
                window.count += 1
                allowed = True
            else:
                # Rejections leave the window untouched
                allowed = False
            current_count = window.count
            reset_in = max(0.0, window.started_at + self.window_seconds - now)

            # Full-table scans run at most once per window
            if len(self._windows) > self.prune_threshold and now - self._last_prune >= self.window_seconds:
                self._prune(now)

        result = {
            "allowed": allowed,
            "current_count": current_count,
            "limit": self.max_requests,
            "remaining": max(0, self.max_requests - current_count),
            "reset_in_seconds": math.ceil(reset_in),
        }
        if not allowed:
            result["retry_after"] = max(1, math.ceil(reset_in))
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                current_count=current_count,
                limit=self.max_requests
            )
        return result

    def get_window(self, client_id: str) -> Optional[RateWindow]:
        """Live window for ``client_id``, or None if absent or elapsed."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(client_id)
            if window is None or self._expired(window, now):
                return None
            return RateWindow(started_at=window.started_at, count=window.count)

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)

    def _expired(self, window: RateWindow, now: float) -> bool:
        return now - window.started_at >= self.window_seconds

    def _prune(self, now: float) -> None:
        self._last_prune = now
        stale = [key for key, window in self._windows.items() if self._expired(window, now)]
        for key in stale:
            del self._windows[key]
        if stale:
            self.logger.debug("Pruned stale rate windows", pruned=len(stale), remaining=len(self._windows))


def get_client_address(request: Request, trust_forwarded_for: bool = False) -> str:
    """Extract the submitter address from a request.

    Proxy headers are only honoured when ``trust_forwarded_for`` is set;
    otherwise any client could pick its own rate-limit key.
    """
    if trust_forwarded_for:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return request.client.host if request.client else "unknown"


class RateLimitMiddleware:
    """Applies the limiter to incoming submission requests."""

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        trust_forwarded_for: bool = False,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.rate_limiter = rate_limiter
        self.trust_forwarded_for = trust_forwarded_for
        self.metrics = metrics
        self.logger = get_logger("contact.rate_limit_middleware")

    def check_request(self, request: Request) -> Dict[str, Any]:
        """Admit the request or raise RateLimited."""
        client_id = get_client_address(request, self.trust_forwarded_for)
        result = self.rate_limiter.check_rate_limit(client_id)

        if not result["allowed"]:
            if self.metrics:
                self.metrics.increment_counter("rate_limit_rejections_total")
            raise RateLimited(
                retry_after=result["retry_after"],
                headers=self.rate_limit_headers(result),
            )
        return result

    @staticmethod
    def rate_limit_headers(result: Dict[str, Any]) -> Dict[str, str]:
        """Rate limiting metadata as standard headers."""
        return {
            "X-RateLimit-Limit": str(result["limit"]),
            "X-RateLimit-Remaining": str(result["remaining"]),
            "X-RateLimit-Reset": str(result["reset_in_seconds"]),
        }
