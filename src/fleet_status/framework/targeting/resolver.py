"""
Target resolution.

Expands a validated Target into the concrete endpoint names to dispatch to.
Selector matching is a substring match on endpoint names, not label matching.
"""

import logging
from collections.abc import Iterable

from .exceptions import NoMatchError
from .target import Target, TargetType

logger = logging.getLogger(__name__)


def parse_selector(expression: str) -> dict[str, str]:
    """Parse ``key1=value1,key2=value2`` into pairs; pairs without ``=`` are dropped."""
    pairs: dict[str, str] = {}
    for pair in expression.split(","):
        key, sep, value = pair.strip().partition("=")
        if sep:
            pairs[key.strip()] = value.strip()
    return pairs


def matches_selector(name: str, pairs: dict[str, str]) -> bool:
    """Check if an endpoint name satisfies every selector pair."""
    for key, value in pairs.items():
        if key == "name" and value not in name:
            return False
        if key == "env" and value.lower() not in name.lower():
            return False
    return True


def resolve_endpoint_names(target: Target, available: Iterable[str]) -> list[str]:
    """
    Resolve a target against the currently known endpoint names.

    Args:
        target: Target declaration
        available: Names currently registered

    Returns:
        Endpoint names to dispatch to. ``multi`` keeps its given order
        (duplicates included); the other kinds return sorted names.

    Raises:
        TargetValidationError: If the target is malformed
        NoMatchError: If the target matches no endpoint
    """
    target.check()
    known = sorted(set(available))

    if target.kind == TargetType.SINGLE:
        return [target.endpoint]

    if target.kind == TargetType.MULTI:
        return list(target.endpoints)

    if target.kind == TargetType.ALL:
        if not known:
            raise NoMatchError("all", "registered endpoints", "no endpoints registered")
        return known

    if target.kind == TargetType.FLEET:
        prefix = f"{target.group}-"
        members = [name for name in known if name == target.group or name.startswith(prefix)]
        if not members:
            raise NoMatchError("fleet", target.group, f"no endpoints for group: {target.group}")
        return members

    pairs = parse_selector(target.selector)
    selected = [name for name in known if matches_selector(name, pairs)]
    if not selected:
        raise NoMatchError(
            "selector", target.selector, f"no endpoints match selector: {target.selector}"
        )
    logger.debug("Selector %r matched %d endpoints", target.selector, len(selected))
    return selected
