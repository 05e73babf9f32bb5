import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable

from arcade_filemaker.constants import DEFAULT_RATE_LIMIT, OPERATION_RATE_LIMITS
from arcade_filemaker.models import RateLimitStatus, RequestRecord

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window request counter shared by every operation name.

    Advisory only: `check` records the request and reports whether the caller is
    over its limit, it never blocks.
    """

    def __init__(
        self,
        limits: dict[str, int] | None = None,
        default_limit: int = DEFAULT_RATE_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._limits = dict(OPERATION_RATE_LIMITS if limits is None else limits)
        self.default_limit = default_limit
        self._clock = clock
        self._lock = threading.Lock()
        self._events: deque[RequestRecord] = deque()

    def limit_for(self, operation: str) -> int:
        return self._limits.get(operation, self.default_limit)

    def configure(self, operation: str, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        with self._lock:
            self._limits[operation] = limit

    def reset(self) -> None:
        with self._lock:
            self._events.clear()

    def check(self, operation: str, window_seconds: float = 60.0) -> RateLimitStatus:
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")

        with self._lock:
            now = self._clock()
            window_start = now - window_seconds
            # Events are appended in clock order, so expired ones sit at the left.
            while self._events and self._events[0].timestamp <= window_start:
                self._events.popleft()

            self._events.append(RequestRecord(operation=operation, timestamp=now))
            timestamps = [
                event.timestamp for event in self._events if event.operation == operation
            ]
            count = len(timestamps)
            limit = self.limit_for(operation)

        if count <= limit:
            return RateLimitStatus(
                operation=operation,
                limited=False,
                count=count,
                limit=limit,
                remaining=limit - count,
            )

        wait_seconds = max(0.0, window_seconds - (now - min(timestamps)))
        logger.info(
            "Rate limit reached for '%s': %d requests in %.0fs (limit %d)",
            operation,
            count,
            window_seconds,
            limit,
        )
        return RateLimitStatus(
            operation=operation,
            limited=True,
            count=count,
            limit=limit,
            remaining=0,
            wait_seconds=round(wait_seconds, 3),
            recommendation=f"Wait {math.ceil(wait_seconds)} seconds before the next request",
        )
