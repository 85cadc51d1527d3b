"""
Concurrent dispatch of read-only operations across endpoints.
"""

from .context import DispatchContext, DispatchTimeoutError
from .dispatcher import Dispatcher, EndpointTask, Operation, execute_on_endpoints
from .results import AggregatedResult, Outcome, ResultAggregator, serialize_payload

__all__ = [
    "AggregatedResult",
    "DispatchContext",
    "DispatchTimeoutError",
    "Dispatcher",
    "EndpointTask",
    "Operation",
    "Outcome",
    "ResultAggregator",
    "execute_on_endpoints",
    "serialize_payload",
]
