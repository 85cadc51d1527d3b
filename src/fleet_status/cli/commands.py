"""
Fleet status commands.

Lists the registered clusters and the status tool catalog, and runs one
status tool against a target built from command-line options.
"""

import json
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fleet_status import __version__
from fleet_status.core.registry import EndpointRegistry
from fleet_status.framework.clients import build_registry
from fleet_status.framework.config import FleetStatusSettings, load_settings
from fleet_status.framework.logging import configure_logging
from fleet_status.framework.targeting import TargetType
from fleet_status.services import TOOLS, available_tools, handle_tool

console = Console()

OUTPUT_FORMATS = ("json", "yaml", "table")


class CliState:
    """Settings for one invocation; the registry is built on first use."""

    def __init__(self, settings: FleetStatusSettings):
        self.settings = settings
        self._registry: EndpointRegistry | None = None

    @property
    def registry(self) -> EndpointRegistry:
        if self._registry is None:
            self._registry = build_registry(self.settings)
        return self._registry


def _split_names(value: str | None) -> list[str]:
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def build_target_arguments(
    target_type: str | None,
    cluster: str | None,
    clusters: str | None,
    fleet: str | None,
    selector: str | None,
    timeout: float | None,
) -> dict[str, Any]:
    """Tool arguments for the given options; no options yields no target."""
    target: dict[str, Any] = {}
    if target_type:
        target["type"] = target_type
    if cluster:
        target["cluster"] = cluster
    names = _split_names(clusters)
    if names:
        target["clusters"] = names
    if fleet:
        target["fleet"] = fleet
    if selector:
        target["selector"] = selector
    if timeout:
        target["timeout"] = timeout
    return {"target": target} if target else {}


def _detail(outcome: dict[str, Any]) -> str:
    if not outcome["success"]:
        return outcome.get("error", "")
    data = outcome.get("data")
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return ""


def _print_result_table(tool_name: str, result: dict[str, Any]) -> None:
    table = Table(title=tool_name)
    table.add_column("Cluster", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Detail", style="white")

    for name, outcome in result["clusterResults"].items():
        status = "[green]OK[/green]" if outcome["success"] else "[red]FAILED[/red]"
        table.add_row(name, status, escape(_detail(outcome)))
    console.print(table)

    summary = result["summary"]
    console.print(
        f"Clusters: {summary['clustersTotal']} total, "
        f"{summary['clustersOk']} ok, {summary['clustersFailed']} failed",
        style="bold",
    )


@click.group()
@click.version_option(version=__version__, prog_name="fleet-status")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML settings file",
)
@click.option(
    "--kubeconfig",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Kubeconfig file whose contexts are registered as clusters",
)
@click.option("--in-cluster", is_flag=True, help="Use the pod's service account credentials")
@click.option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR, OFF)")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    kubeconfig: Path | None,
    in_cluster: bool,
    log_level: str | None,
):
    """Read-only status checks across a fleet of clusters."""
    try:
        settings = load_settings(
            config_file,
            kubeconfig=kubeconfig,
            in_cluster=True if in_cluster else None,
            log_level=log_level,
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    configure_logging(settings.service_name, settings.log_level, settings.log_json)
    ctx.obj = CliState(settings)


@cli.command()
@click.pass_obj
def clusters(state: CliState):
    """List registered clusters."""
    registry = state.registry
    handles = registry.list()
    if not handles:
        console.print("No clusters registered", style="yellow")
        return

    default = registry.default_endpoint
    table = Table(title="Registered Clusters")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Context", style="green")
    table.add_column("Default", style="yellow")
    for name in sorted(handles):
        table.add_row(name, handles[name].context, "*" if name == default else "")
    console.print(table)


@cli.command()
@click.pass_obj
def tools(state: CliState):
    """List the status tool catalog."""
    catalog = available_tools(state.settings)
    if not catalog:
        console.print("Status tools are disabled (set FUSION_TOOLS_ENABLED=true)", style="yellow")
        return

    table = Table(title="Status Tools")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Title", style="green")
    table.add_column("Description")
    for tool in catalog:
        table.add_row(tool.name, tool.title, tool.description)
    console.print(table)


@cli.command()
@click.argument("tool_name", type=click.Choice([tool.name for tool in TOOLS]), metavar="TOOL")
@click.option(
    "--type",
    "target_type",
    type=click.Choice([kind.value for kind in TargetType]),
    help="Targeting strategy",
)
@click.option("--cluster", help="Cluster name (type=single)")
@click.option("--clusters", help="Comma-separated cluster names (type=multi)")
@click.option("--fleet", help="Fleet name (type=fleet)")
@click.option("--selector", help="Selector key=value[,key=value] (type=selector)")
@click.option("--timeout", type=click.FloatRange(min=0), help="Per-cluster timeout in seconds")
@click.option(
    "--output",
    "-o",
    type=click.Choice(OUTPUT_FORMATS),
    default="json",
    show_default=True,
    help="Output format",
)
@click.pass_obj
def status(
    state: CliState,
    tool_name: str,
    target_type: str | None,
    cluster: str | None,
    clusters: str | None,
    fleet: str | None,
    selector: str | None,
    timeout: float | None,
    output: str,
):
    """Run status tool TOOL across the targeted clusters."""
    if not state.settings.tools_enabled:
        console.print("Status tools are disabled (set FUSION_TOOLS_ENABLED=true)", style="yellow")
        raise click.exceptions.Exit(1)

    arguments = build_target_arguments(target_type, cluster, clusters, fleet, selector, timeout)
    result = handle_tool(tool_name, arguments, state.registry)

    if output == "yaml":
        click.echo(yaml.safe_dump(result, sort_keys=False, default_flow_style=False))
    elif output == "table":
        _print_result_table(tool_name, result)
    else:
        click.echo(json.dumps(result, indent=2))

    error = result["summary"].get("error")
    if error:
        raise click.ClickException(error)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
