"""
Request throttling helpers for the roadmap endpoint.

- UserRateLimiter: one request per user per cooldown window
- RequestDeduplicator: concurrent identical requests share one result

Both keep state in a lock-guarded dict. Stale entries are swept on
access instead of by a background thread. FastAPI runs sync routes in
a thread pool, hence threading primitives rather than asyncio ones.
"""

import math
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from researchhub.core.logging import get_logger

logger = get_logger(__name__)


class UserRateLimiter:
    """
    Tracks the last request time per (user, request type).

    Usage:
        limiter = UserRateLimiter(cooldown_seconds=10)
        allowed, retry_after = limiter.allow_request(user_id, "roadmap")
    """

    def __init__(self, cooldown_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.cooldown = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_requests: Dict[str, float] = {}

    def allow_request(self, user_id: Any, request_type: str) -> Tuple[bool, int]:
        """
        Returns:
            (allowed, seconds until the next request is allowed)
        """
        key = f"{user_id}_{request_type}"

        with self._lock:
            now = self._clock()
            self._sweep(now)

            last = self._last_requests.get(key)
            if last is not None and now - last < self.cooldown:
                return False, math.ceil(self.cooldown - (now - last))

            self._last_requests[key] = now
            return True, 0

    def _sweep(self, now: float) -> None:
        expired = [k for k, t in self._last_requests.items() if now - t > self.cooldown * 2]
        for key in expired:
            del self._last_requests[key]


class _PendingRequest:
    def __init__(self, created_at: float):
        self.created_at = created_at
        self.done = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None


class RequestDeduplicator:
    """
    Collapses concurrent calls with the same key into one.

    The first caller runs the generator; callers arriving while it is
    in flight block until it finishes and receive the same result (or
    the same exception).
    """

    def __init__(self, timeout_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: Dict[str, _PendingRequest] = {}

    def in_flight(self) -> int:
        with self._lock:
            return len(self._pending)

    def run(self, key: str, generator: Callable[[], Any]) -> Any:
        with self._lock:
            now = self._clock()
            self._sweep(now)

            pending = self._pending.get(key)
            is_owner = pending is None
            if is_owner:
                pending = _PendingRequest(created_at=now)
                self._pending[key] = pending

        if not is_owner:
            logger.info(f"Waiting for in-flight request {key}")
            if not pending.done.wait(self.timeout):
                raise TimeoutError(f"Timed out waiting for in-flight request {key}")
            if pending.error is not None:
                raise pending.error
            return pending.result

        logger.info(f"Starting new request {key}")
        try:
            pending.result = generator()
        except Exception as e:
            pending.error = e
            raise
        finally:
            pending.done.set()
            with self._lock:
                if self._pending.get(key) is pending:
                    del self._pending[key]

        return pending.result

    def _sweep(self, now: float) -> None:
        expired = [k for k, p in self._pending.items() if now - p.created_at > self.timeout]
        for key in expired:
            del self._pending[key]
