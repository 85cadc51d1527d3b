"""
Thread-safe endpoint registry.

This module holds the canonical mapping from endpoint name to a live,
already-authenticated connection. The registry is constructed once at
process start and passed to every request handler, replacing a hidden
global with an explicit dependency that tests can reset with ``clear()``.
"""

from __future__ import annotations

import builtins
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class EndpointNotFoundError(LookupError):
    """Raised when a name has no registered endpoint."""

    def __init__(self, name: str):
        super().__init__(f"endpoint {name} not found in registry")
        self.name = name


class RegistrationError(Exception):
    """Raised when a connection for an endpoint cannot be constructed."""

    def __init__(self, name: str, cause: Exception | None = None):
        message = f"failed to register endpoint {name}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.name = name
        self.cause = cause


@dataclass(frozen=True)
class EndpointHandle:
    """
    Registry entry for one addressable endpoint.

    ``connection`` is shared by every task that targets this endpoint and
    must be safe for concurrent read-only use. ``raw_config`` is the
    configuration the connection was built from, so callers can construct
    secondary clients.
    """

    name: str
    connection: Any
    raw_config: Any = None
    context: str = ""


class ReadWriteLock:
    """Readers/writer lock: shared readers, exclusive writers, writers preferred."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class EndpointRegistry:
    """
    Named collection of live endpoint handles.

    Reads take a shared lock and mutations an exclusive one. The lock guards
    only the name-to-handle mapping, never the handles' internal state.
    """

    def __init__(self, default_timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._handles: dict[str, EndpointHandle] = {}
        self._lock = ReadWriteLock()
        self._default_timeout = float(default_timeout)
        self._default_endpoint: str | None = None

    def register(self, name: str, handle: EndpointHandle) -> None:
        """Insert a handle, overwriting any previous entry with the same name."""
        with self._lock.write_locked():
            replaced = name in self._handles
            self._handles[name] = handle
        logger.debug("%s endpoint %s", "Replaced" if replaced else "Registered", name)

    def unregister(self, name: str) -> None:
        """Remove an endpoint if present."""
        with self._lock.write_locked():
            removed = self._handles.pop(name, None)
            if removed is not None and self._default_endpoint == name:
                self._default_endpoint = None
        if removed is not None:
            logger.debug("Unregistered endpoint %s", name)

    def get(self, name: str) -> EndpointHandle | None:
        """Get a handle, or None if the name is not registered."""
        with self._lock.read_locked():
            return self._handles.get(name)

    def require(self, name: str) -> EndpointHandle:
        """Get a handle or raise EndpointNotFoundError."""
        handle = self.get(name)
        if handle is None:
            raise EndpointNotFoundError(name)
        return handle

    def has(self, name: str) -> bool:
        with self._lock.read_locked():
            return name in self._handles

    def list(self) -> dict[str, EndpointHandle]:
        """Copy of all registered handles keyed by name."""
        with self._lock.read_locked():
            return dict(self._handles)

    def names(self) -> builtins.list[str]:
        with self._lock.read_locked():
            return list(self._handles)

    def clear(self) -> None:
        """Drop every entry and the default designation (process reset, test isolation)."""
        with self._lock.write_locked():
            self._handles = {}
            self._default_endpoint = None
        logger.debug("Cleared all registered endpoints")

    @property
    def default_timeout(self) -> float:
        with self._lock.read_locked():
            return self._default_timeout

    def set_default_timeout(self, seconds: float) -> None:
        """Set the fallback per-endpoint timeout used when a target sets none."""
        if seconds <= 0:
            raise ValueError(f"default timeout must be positive, got {seconds}")
        with self._lock.write_locked():
            self._default_timeout = float(seconds)

    @property
    def default_endpoint(self) -> str | None:
        """Name used for a single target that does not name an endpoint."""
        with self._lock.read_locked():
            return self._default_endpoint

    def set_default_endpoint(self, name: str | None) -> None:
        with self._lock.write_locked():
            self._default_endpoint = name or None
        logger.debug("Default endpoint set to %s", name)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._handles)

    def __contains__(self, name: object) -> bool:
        with self._lock.read_locked():
            return name in self._handles

    @contextmanager
    def temporary_endpoint(self, handle: EndpointHandle) -> Iterator[EndpointHandle]:
        """Temporarily register a handle, restoring the previous entry afterwards."""
        original = self.get(handle.name)
        self.register(handle.name, handle)
        try:
            yield handle
        finally:
            if original is not None:
                self.register(handle.name, original)
            else:
                self.unregister(handle.name)
