"""
Fleet Status

Read-only status checks fanned out concurrently across a fleet of
Kubernetes clusters, with per-cluster isolation and timeouts.
"""

__version__ = "1.0.0"
__author__ = "Fleet Status Team"

from .core import EndpointHandle, EndpointRegistry
from .framework.dispatch import AggregatedResult, Dispatcher, execute_on_endpoints
from .framework.targeting import Target, TargetType

__all__ = [
    "__version__",
    "__author__",
    "AggregatedResult",
    "Dispatcher",
    "EndpointHandle",
    "EndpointRegistry",
    "Target",
    "TargetType",
    "execute_on_endpoints",
]
