"""
Status tool catalog.

Every tool is a read-only status check dispatched across the endpoints
selected by a ``target`` argument. The catalog is only exposed when
``FUSION_TOOLS_ENABLED`` is set.
"""

import logging
from dataclasses import dataclass
from typing import Any

from fleet_status.core.registry import EndpointRegistry
from fleet_status.framework.config import FleetStatusSettings
from fleet_status.framework.dispatch import Dispatcher, Operation, ResultAggregator
from fleet_status.framework.targeting import Target, TargetingError, TargetType, target_json_schema

from .backup import backup_jobs
from .platform import (
    cas_status,
    catalog_status,
    dr_status,
    gdp_status,
    hcp_status,
    observability_status,
    serviceability_status,
    virtualization_status,
)
from .storage import data_foundation_status, storage_summary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusTool:
    """A named, read-only status check."""

    name: str
    title: str
    description: str
    operation: Operation
    read_only: bool = True

    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {"target": target_json_schema()}}

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "readOnly": self.read_only,
            "inputSchema": self.input_schema(),
        }


TOOLS: tuple[StatusTool, ...] = (
    StatusTool(
        "fusion.storage.summary",
        "IBM Fusion Storage Summary",
        "Get a comprehensive summary of storage status including storage classes, "
        "PVC statistics, and ODF/OCS detection",
        storage_summary,
    ),
    StatusTool(
        "fusion.datafoundation.status",
        "Data Foundation Status",
        "Get Data Foundation (ODF/OCS) status across clusters including installation status, "
        "storage classes, and Ceph health",
        data_foundation_status,
    ),
    StatusTool(
        "fusion.backup.jobs.list",
        "Backup Jobs List",
        "List backup jobs across clusters including OADP/Velero backups with status and age",
        backup_jobs,
    ),
    StatusTool(
        "fusion.gdp.status",
        "GDP Status",
        "Get Global Data Platform (IBM Spectrum Scale) status across clusters",
        gdp_status,
    ),
    StatusTool(
        "fusion.dr.status",
        "DR Status",
        "Get Disaster Recovery status across clusters including Metro DR and Regional DR",
        dr_status,
    ),
    StatusTool(
        "fusion.catalog.status",
        "Data Catalog Status",
        "Get Data Cataloging status across clusters",
        catalog_status,
    ),
    StatusTool(
        "fusion.cas.status",
        "CAS Status",
        "Get Content Aware Storage status across clusters",
        cas_status,
    ),
    StatusTool(
        "fusion.serviceability.summary",
        "Serviceability Summary",
        "Get serviceability summary across clusters including must-gather and logging",
        serviceability_status,
    ),
    StatusTool(
        "fusion.observability.summary",
        "Observability Summary",
        "Get observability summary across clusters including Prometheus, Grafana, and OpenTelemetry",
        observability_status,
    ),
    StatusTool(
        "fusion.virtualization.status",
        "Virtualization Status",
        "Get virtualization status across clusters including KubeVirt and OpenShift Virtualization",
        virtualization_status,
    ),
    StatusTool(
        "fusion.hcp.status",
        "HCP Status",
        "Get Hosted Control Planes (HyperShift) status across clusters",
        hcp_status,
    ),
)

_TOOLS_BY_NAME = {tool.name: tool for tool in TOOLS}


def available_tools(settings: FleetStatusSettings) -> list[StatusTool]:
    """The catalog when tools are enabled, otherwise nothing."""
    if not settings.tools_enabled:
        logger.info("Fleet status tools disabled (set FUSION_TOOLS_ENABLED=true to enable)")
        return []
    return list(TOOLS)


def get_tool(tool_name: str) -> StatusTool:
    """Look up a tool by name; raises KeyError for unknown names."""
    try:
        return _TOOLS_BY_NAME[tool_name]
    except KeyError:
        raise KeyError(f"unknown tool: {tool_name}") from None


def _names_no_endpoint(raw: dict[str, Any]) -> bool:
    single = raw.get("type") in (None, "", TargetType.SINGLE.value)
    return single and not (raw.get("cluster") or raw.get("endpoint"))


def _echo_target(arguments: dict[str, Any] | None) -> dict[str, Any]:
    """The caller's target as given, for results whose target could not be parsed."""
    raw = (arguments or {}).get("target")
    if not isinstance(raw, dict):
        return {"type": TargetType.SINGLE.value}
    return {**raw, "type": raw.get("type") or TargetType.SINGLE.value}


def parse_target(arguments: dict[str, Any] | None, registry: EndpointRegistry) -> Target:
    """
    Build the target of a tool call.

    A missing or non-object ``target`` addresses the registry's default
    endpoint, as does a single target that names no endpoint.

    Raises:
        TargetingError: If the target is invalid or no default endpoint exists
    """
    raw = (arguments or {}).get("target")
    if not isinstance(raw, dict):
        if raw is not None:
            logger.debug("Ignoring non-object target argument: %r", raw)
        return Target.default_for(registry)
    if _names_no_endpoint(raw):
        default = Target.default_for(registry)
        fields = {key: value for key, value in raw.items() if key != "endpoint"}
        return Target.from_input({**fields, "type": default.kind.value, "cluster": default.endpoint})
    return Target.from_input(raw)


def handle_tool(
    tool_name: str, arguments: dict[str, Any] | None, registry: EndpointRegistry
) -> dict[str, Any]:
    """
    Run a status tool and return its aggregated result.

    Target errors never raise: they are reported in ``summary.error`` with
    no cluster results.

    Raises:
        KeyError: If ``tool_name`` is not in the catalog
    """
    tool = get_tool(tool_name)
    try:
        target = parse_target(arguments, registry)
    except TargetingError as e:
        logger.warning("Invalid target for %s: %s", tool_name, e)
        result = ResultAggregator.unresolved(Target.model_construct(), str(e)).to_dict()
        result["target"] = _echo_target(arguments)
        return result

    logger.debug("Running %s on %s target", tool.name, target.kind.value)
    return Dispatcher(registry).dispatch(target, tool.operation).to_dict()
