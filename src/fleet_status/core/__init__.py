"""Process-wide endpoint registry."""

from .registry import (
    DEFAULT_TIMEOUT_SECONDS,
    EndpointHandle,
    EndpointNotFoundError,
    EndpointRegistry,
    ReadWriteLock,
    RegistrationError,
)

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "EndpointHandle",
    "EndpointNotFoundError",
    "EndpointRegistry",
    "ReadWriteLock",
    "RegistrationError",
]
