"""
Bounded per-endpoint execution context.

Each dispatched unit of work receives its own DispatchContext carrying a
deadline and a cancellation flag. Cancelling one context never affects
another. Operations are expected to pass the remaining time through to any
network call and to stop early once the context is cancelled.
"""

import threading
import time


class DispatchTimeoutError(Exception):
    """Raised when an endpoint operation outlives its deadline."""

    def __init__(self, endpoint: str, timeout_seconds: float):
        super().__init__(f"operation timed out for endpoint {endpoint} after {timeout_seconds:g}s")
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds


class DispatchContext:
    """Deadline and cancellation state for one endpoint operation."""

    # Floor for request timeouts handed to clients once the deadline is close
    MIN_REQUEST_TIMEOUT = 0.001

    def __init__(self, endpoint: str, timeout_seconds: float):
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self.start_time = time.monotonic()
        self.deadline = self.start_time + timeout_seconds
        self._cancel_event = threading.Event()

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time since the context was created."""
        return time.monotonic() - self.start_time

    @property
    def remaining_time(self) -> float:
        """Get remaining time before the deadline."""
        return max(0.0, self.deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def is_expired(self) -> bool:
        """Check if the deadline has passed."""
        return time.monotonic() >= self.deadline

    def done(self) -> bool:
        """True once the context is cancelled or past its deadline."""
        return self.cancelled or self.is_expired()

    def cancel(self) -> None:
        self._cancel_event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """
        Sleep until cancelled, bounded by ``timeout`` and the deadline.

        Returns True if the context was cancelled or expired while waiting.
        """
        limit = self.remaining_time if timeout is None else min(timeout, self.remaining_time)
        self._cancel_event.wait(limit)
        return self.done()

    def check(self) -> None:
        """Raise DispatchTimeoutError if the context is done."""
        if self.done():
            raise DispatchTimeoutError(self.endpoint, self.timeout_seconds)

    def request_timeout(self) -> float:
        """Remaining time in a form suitable for a client ``_request_timeout``."""
        self.check()
        return max(self.remaining_time, self.MIN_REQUEST_TIMEOUT)

    def __repr__(self) -> str:
        return (
            f"DispatchContext(endpoint={self.endpoint!r}, timeout={self.timeout_seconds}, "
            f"remaining={self.remaining_time:.3f})"
        )
