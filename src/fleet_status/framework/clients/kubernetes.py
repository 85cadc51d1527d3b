"""
Kubernetes registration providers.

Builds endpoint handles from a multi-context kubeconfig or from ambient
in-cluster credentials and registers them in an EndpointRegistry. Bulk
registration is best-effort: a context that cannot produce a usable client
is skipped and never aborts the others.
"""

import builtins
import logging
from pathlib import Path

from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.config import ConfigException

from fleet_status.core.registry import EndpointHandle, EndpointRegistry, RegistrationError
from fleet_status.framework.config import FleetStatusSettings

logger = logging.getLogger(__name__)

IN_CLUSTER_ENDPOINT = "in-cluster"


def _build_context_handle(kubeconfig_path: Path, context_name: str) -> EndpointHandle:
    api_client = k8s_config.new_client_from_config(
        config_file=str(kubeconfig_path), context=context_name, persist_config=False
    )
    return EndpointHandle(
        name=context_name,
        connection=api_client,
        raw_config=api_client.configuration,
        context=context_name,
    )


def register_context(
    registry: EndpointRegistry, kubeconfig_path: Path | str, context_name: str
) -> EndpointHandle:
    """
    Register one named context from a kubeconfig file.

    Raises:
        RegistrationError: If the file cannot be read, the context does not
            exist, or no client can be built for it
    """
    path = Path(kubeconfig_path).expanduser()
    try:
        contexts, _ = k8s_config.list_kube_config_contexts(config_file=str(path))
    except Exception as e:
        raise RegistrationError(context_name, e) from e

    if context_name not in {ctx["name"] for ctx in contexts}:
        raise RegistrationError(context_name, ValueError(f"context {context_name} not found in {path}"))

    try:
        handle = _build_context_handle(path, context_name)
    except Exception as e:
        raise RegistrationError(context_name, e) from e

    registry.register(context_name, handle)
    return handle


def register_from_kubeconfig(
    registry: EndpointRegistry, kubeconfig_path: Path | str | None = None
) -> builtins.list[str]:
    """
    Register every context found in a kubeconfig file.

    Contexts that fail to produce a client are logged and skipped. The
    file's current-context becomes the registry's default endpoint unless
    one is already designated.

    Args:
        registry: Registry to populate
        kubeconfig_path: Kubeconfig file (defaults to ``~/.kube/config``)

    Returns:
        Names of the registered contexts

    Raises:
        ConfigException: If the file cannot be loaded at all
    """
    path = Path(kubeconfig_path or "~/.kube/config").expanduser()
    contexts, active = k8s_config.list_kube_config_contexts(config_file=str(path))

    registered = []
    for ctx in contexts:
        name = ctx["name"]
        try:
            handle = _build_context_handle(path, name)
        except Exception as e:
            # malformed entries surface as arbitrary errors from the loader
            logger.warning("Skipping kubeconfig context %s: %s", name, e)
            continue
        registry.register(name, handle)
        registered.append(name)

    if active and active.get("name") in registered and not registry.default_endpoint:
        registry.set_default_endpoint(active["name"])

    logger.info("Registered %d of %d kubeconfig contexts from %s", len(registered), len(contexts), path)
    return registered


def register_in_cluster(
    registry: EndpointRegistry, name: str = IN_CLUSTER_ENDPOINT
) -> EndpointHandle:
    """
    Register the pod's ambient service-account credentials as one endpoint.

    Raises:
        RegistrationError: If not running inside a cluster
    """
    configuration = client.Configuration()
    try:
        k8s_config.load_incluster_config(client_configuration=configuration)
    except ConfigException as e:
        raise RegistrationError(name, e) from e

    handle = EndpointHandle(
        name=name,
        connection=client.ApiClient(configuration=configuration),
        raw_config=configuration,
        context=name,
    )
    registry.register(name, handle)
    if not registry.default_endpoint:
        registry.set_default_endpoint(name)
    return handle


def build_registry(settings: FleetStatusSettings) -> EndpointRegistry:
    """
    Construct the process-wide registry from settings.

    Called once at process start. Population is best-effort: missing
    credentials leave the registry empty rather than failing start-up.
    """
    registry = EndpointRegistry(default_timeout=settings.default_timeout)
    if settings.default_endpoint:
        registry.set_default_endpoint(settings.default_endpoint)

    if settings.in_cluster:
        try:
            register_in_cluster(registry)
        except RegistrationError as e:
            logger.warning("In-cluster registration failed: %s", e)
    else:
        try:
            register_from_kubeconfig(registry, settings.kubeconfig)
        except Exception as e:
            logger.warning("Kubeconfig registration failed for %s: %s", settings.kubeconfig, e)

    return registry
