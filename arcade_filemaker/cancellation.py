"""Cooperative cancellation for long batch, import, export and sync runs."""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Iterator

logger = logging.getLogger(__name__)


class CancellationToken:
    """Checked by the runners between items and pages, and while pausing."""

    def __init__(self, run_id: str | None = None) -> None:
        self.run_id = run_id
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> None:
        """Pause for `seconds`, returning early if the token is cancelled."""
        if seconds <= 0 or self.cancelled:
            return
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._event.wait(), timeout=seconds)


class RunRegistry:
    """Tokens for in-flight runs, keyed by caller supplied run ids."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: dict[str, CancellationToken] = {}

    def register(self, run_id: str) -> CancellationToken:
        with self._lock:
            if run_id in self._tokens:
                raise ValueError(f"Run '{run_id}' is already active")
            token = CancellationToken(run_id)
            self._tokens[run_id] = token
            return token

    def release(self, run_id: str) -> None:
        with self._lock:
            self._tokens.pop(run_id, None)

    def cancel(self, run_id: str) -> bool:
        with self._lock:
            token = self._tokens.get(run_id)
        if token is None:
            return False
        token.cancel()
        logger.info("Cancellation requested for run '%s'", run_id)
        return True

    def active_runs(self) -> list[str]:
        with self._lock:
            return sorted(self._tokens)

    @contextlib.contextmanager
    def track(self, run_id: str | None) -> Iterator[CancellationToken]:
        """Yield a token for the run; anonymous runs get a token nobody can cancel."""
        if run_id is None:
            yield CancellationToken()
            return
        token = self.register(run_id)
        try:
            yield token
        finally:
            self.release(run_id)
