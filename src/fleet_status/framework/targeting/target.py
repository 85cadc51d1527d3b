"""
Target Declarations

A target describes which endpoints an operation addresses and how long each
endpoint may take. Targets are immutable once validated and are echoed back
in every dispatch result.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import EmptyTargetError, InvalidTargetKindError, TargetValidationError

if TYPE_CHECKING:
    from fleet_status.core.registry import EndpointRegistry


class TargetType(str, Enum):
    """How endpoints are selected for an operation."""

    SINGLE = "single"  # One named endpoint
    MULTI = "multi"  # Explicit list of endpoints
    FLEET = "fleet"  # Every endpoint in a named group
    SELECTOR = "selector"  # Endpoints matching key=value pairs
    ALL = "all"  # Every registered endpoint


class Target(BaseModel):
    """Declarative specification of the endpoints an operation runs against."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    kind: TargetType = Field(
        default=TargetType.SINGLE,
        alias="type",
        description=(
            "Targeting strategy: single (one cluster), multi (specific clusters), "
            "fleet (all in fleet), selector (label-based), all (all registered)"
        ),
    )
    endpoint: str = Field(default="", alias="cluster", description="Single cluster name (for type=single)")
    endpoints: tuple[str, ...] = Field(
        default=(), alias="clusters", description="List of cluster names (for type=multi)"
    )
    group: str = Field(default="", alias="fleet", description="Fleet name (for type=fleet)")
    selector: str = Field(
        default="",
        alias="selector",
        description="Label selector (for type=selector), format: key1=value1,key2=value2",
    )
    timeout_seconds: float = Field(
        default=0,
        alias="timeout",
        description="Operation timeout in seconds (0 uses the registry default)",
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if value is None or value == "":
            return TargetType.SINGLE
        if isinstance(value, TargetType):
            return value
        try:
            return TargetType(str(value))
        except ValueError:
            raise InvalidTargetKindError(f"invalid target type: {value}", kind=str(value)) from None

    @model_validator(mode="after")
    def _check_required_fields(self) -> Target:
        self.check()
        return self

    def check(self) -> None:
        """Raise TargetValidationError unless the fields required by the kind are set."""
        kind = self.kind.value
        if self.kind == TargetType.SINGLE and not self.endpoint:
            raise TargetValidationError("cluster name required for single target", kind=kind)
        if self.kind == TargetType.MULTI and not self.endpoints:
            raise TargetValidationError("at least one cluster required for multi target", kind=kind)
        if self.kind == TargetType.FLEET and not self.group:
            raise TargetValidationError("fleet name required for fleet target", kind=kind)
        if self.kind == TargetType.SELECTOR and not self.selector.strip():
            raise TargetValidationError("selector required for selector target", kind=kind)

    def effective_timeout(self, default: float) -> float:
        """Per-endpoint timeout: the target override when positive, else the default."""
        if self.timeout_seconds > 0:
            return float(self.timeout_seconds)
        return default

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the target, as echoed in dispatch results."""
        data = self.model_dump(mode="json", by_alias=True, exclude_defaults=True)
        data["type"] = self.kind.value
        return data

    @classmethod
    def from_input(cls, data: dict[str, Any] | None) -> Target:
        """Build a target from caller input, mapping pydantic errors to TargetValidationError."""
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise TargetValidationError(f"invalid target: {e.errors()[0]['msg']}", cause=e) from e

    @classmethod
    def default_for(cls, registry: EndpointRegistry, timeout_seconds: float = 0) -> Target:
        """Single target on the registry's designated default endpoint."""
        name = registry.default_endpoint
        if not name:
            raise EmptyTargetError(
                "no endpoint specified and no default endpoint designated",
                kind=TargetType.SINGLE.value,
            )
        return cls(kind=TargetType.SINGLE, endpoint=name, timeout_seconds=timeout_seconds)


def target_json_schema() -> dict[str, Any]:
    """JSON schema for the ``target`` input parameter of status tools."""
    schema = Target.model_json_schema(by_alias=True)
    schema.pop("title", None)
    return schema
