"""
Per-endpoint outcomes and their aggregation.

Worker threads record outcomes into a ResultAggregator concurrently; once
every worker has reported, the dispatcher freezes it into a read-only
AggregatedResult that serializes to the externally visible result shape.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, TypeAdapter

from fleet_status.framework.targeting import Target

_PAYLOAD_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def serialize_payload(payload: Any) -> Any:
    """Convert an operation payload to its JSON-compatible representation."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    return _PAYLOAD_ADAPTER.dump_python(payload, mode="json")


@dataclass(frozen=True)
class Outcome:
    """Result of one operation on one endpoint."""

    name: str
    success: bool
    data: Any = None
    error_message: str | None = None

    @classmethod
    def ok(cls, name: str, data: Any) -> Outcome:
        return cls(name=name, success=True, data=data)

    @classmethod
    def failed(cls, name: str, error_message: str) -> Outcome:
        return cls(name=name, success=False, error_message=error_message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "clusterName": self.name,
            "success": self.success,
            "data": self.data if self.success else None,
        }
        if not self.success:
            result["error"] = self.error_message or "unknown error"
        return result


class AggregatedResult:
    """Read-only result of one dispatch call."""

    def __init__(
        self,
        target: Target,
        outcomes: dict[str, Outcome] | None = None,
        resolution_error: str | None = None,
    ):
        self.target = target
        self.outcomes = MappingProxyType(dict(outcomes or {}))
        self.resolution_error = resolution_error

    @property
    def total_count(self) -> int:
        return len(self.outcomes)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if not outcome.success)

    def has_errors(self) -> bool:
        return self.resolution_error is not None or self.failure_count > 0

    def errors(self) -> dict[str, str]:
        """Error message per failed endpoint."""
        return {
            name: outcome.error_message or ""
            for name, outcome in self.outcomes.items()
            if not outcome.success
        }

    def to_dict(self) -> dict[str, Any]:
        summary: dict[str, Any] = {
            "clustersTotal": self.total_count,
            "clustersOk": self.success_count,
            "clustersFailed": self.failure_count,
        }
        if self.resolution_error is not None:
            summary["error"] = self.resolution_error
        return {
            "target": self.target.to_dict(),
            "clusterResults": {
                name: outcome.to_dict() for name, outcome in sorted(self.outcomes.items())
            },
            "summary": summary,
        }

    def __repr__(self) -> str:
        return (
            f"AggregatedResult(total={self.total_count}, ok={self.success_count}, "
            f"failed={self.failure_count}, error={self.resolution_error!r})"
        )


class ResultAggregator:
    """Thread-safe collection point for outcomes produced by dispatch workers."""

    def __init__(self, target: Target):
        self.target = target
        self._outcomes: dict[str, Outcome] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def record(self, outcome: Outcome) -> None:
        """Record an outcome; a later outcome for the same name replaces the earlier one."""
        with self._lock:
            if self._frozen:
                raise RuntimeError("cannot record outcomes after the result is frozen")
            self._outcomes[outcome.name] = outcome

    def freeze(self) -> AggregatedResult:
        """Stop accepting outcomes and return the read-only result."""
        with self._lock:
            self._frozen = True
            return AggregatedResult(self.target, self._outcomes)

    @staticmethod
    def unresolved(target: Target, error: str) -> AggregatedResult:
        """Result for a call whose target could not be resolved."""
        return AggregatedResult(target, resolution_error=error)
