"""Fixed-delay rate limiter for the CLOB API. Backoff on 429."""

from __future__ import annotations

import time
from threading import Lock


class RateLimiter:
    """Enforce a minimum delay between consecutive calls to wait()."""

    def __init__(self, delay_ms: int = 500) -> None:
        self._delay_ms = delay_ms
        self._last: float | None = None
        self._lock = Lock()

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def wait(self) -> None:
        """Block until at least delay_ms has passed since the previous wait()."""
        delay = self._delay_ms / 1000.0
        with self._lock:
            now = time.monotonic()
            if self._last is None:
                wait_sec = 0.0
            else:
                wait_sec = max(0.0, delay - (now - self._last))
            # Advance by the computed wait, not to the time sleep() returns
            self._last = now + wait_sec
        if wait_sec > 0:
            time.sleep(wait_sec)

    def reset(self) -> None:
        """Let the next wait() return immediately."""
        with self._lock:
            self._last = None


def backoff_on_429(retries: int = 3, base_delay: float = 1.0) -> float:
    """Return delay in seconds for next retry after a 429. Exponential backoff."""
    return base_delay * (2 ** retries)
