"""
Targeting for multi-endpoint operations.

Targets declare which endpoints an operation addresses; the resolver expands
them against the names known to an endpoint registry.
"""

from .exceptions import (
    EmptyTargetError,
    InvalidTargetKindError,
    NoMatchError,
    TargetingError,
    TargetValidationError,
)
from .resolver import matches_selector, parse_selector, resolve_endpoint_names
from .target import Target, TargetType, target_json_schema

__all__ = [
    "EmptyTargetError",
    "InvalidTargetKindError",
    "NoMatchError",
    "Target",
    "TargetType",
    "TargetValidationError",
    "TargetingError",
    "matches_selector",
    "parse_selector",
    "resolve_endpoint_names",
    "target_json_schema",
]
