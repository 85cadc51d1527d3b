"""
Platform component checks.

Presence probes for the IBM Fusion platform components: Global Data
Platform, disaster recovery, data catalog, content aware storage,
serviceability, observability, virtualization and hosted control planes.
"""

import logging

from kubernetes.client.rest import ApiException

from fleet_status.core.registry import EndpointHandle
from fleet_status.framework.dispatch import DispatchContext

from .common import (
    ComponentStatus,
    GroupVersionResource,
    check_crd_exists,
    check_namespace_exists,
    count_custom_objects,
    first_existing_namespace,
)

logger = logging.getLogger(__name__)

GDP_NAMESPACES = ["ibm-spectrum-scale", "ibm-gdp"]
CATALOG_NAMESPACES = ["ibm-data-catalog", "openshift-data-catalog"]
CAS_NAMESPACE = "ibm-cas"
MUST_GATHER_NAMESPACE = "openshift-must-gather-operator"
LOGGING_NAMESPACE = "openshift-logging"
MONITORING_NAMESPACE = "openshift-monitoring"
GRAFANA_NAMESPACE = "openshift-grafana"
VIRTUALIZATION_NAMESPACES = ["openshift-cnv", "kubevirt"]
HCP_NAMESPACES = ["hypershift", "multicluster-engine"]

DR_RESOURCES = (
    GroupVersionResource("ramendr.openshift.io", "v1alpha1", "drpolicies"),
    GroupVersionResource("ramendr.openshift.io", "v1alpha1", "drclusters"),
)
OTEL_COLLECTORS = GroupVersionResource("opentelemetry.io", "v1alpha1", "opentelemetrycollectors")
VIRTUAL_MACHINES = GroupVersionResource("kubevirt.io", "v1", "virtualmachines")
HOSTED_CLUSTERS = GroupVersionResource("hypershift.openshift.io", "v1beta1", "hostedclusters")


class NamespacedStatus(ComponentStatus):
    namespace: str | None = None


class ServiceabilityStatus(NamespacedStatus):
    must_gather_available: bool = False
    logging_configured: bool = False


class ObservabilityStatus(NamespacedStatus):
    prometheus_installed: bool = False
    grafana_installed: bool = False
    otel_installed: bool = False


class VirtualizationStatus(NamespacedStatus):
    kubevirt_installed: bool = False
    vm_count: int = 0


class HCPStatus(NamespacedStatus):
    hypershift_installed: bool = False
    hosted_cluster_count: int = 0


def _namespace_component(
    context: DispatchContext, handle: EndpointHandle, namespaces: list[str], label: str, missing: str
) -> NamespacedStatus:
    namespace = first_existing_namespace(context, handle, namespaces)
    if namespace is None:
        return NamespacedStatus.not_installed(missing)
    return NamespacedStatus.found(True, f"{label} found in namespace: {namespace}", namespace=namespace)


def _count_or_zero(context: DispatchContext, handle: EndpointHandle, gvr: GroupVersionResource) -> int:
    try:
        return count_custom_objects(context, handle, gvr)
    except ApiException as e:
        logger.debug("Listing %s failed on %s: %s", gvr.resource, handle.name, e.status)
        return 0


def gdp_status(context: DispatchContext, handle: EndpointHandle) -> NamespacedStatus:
    return _namespace_component(context, handle, GDP_NAMESPACES, "GDP", "GDP/Spectrum Scale not found")


def dr_status(context: DispatchContext, handle: EndpointHandle) -> ComponentStatus:
    """Ramen DR is installed when any of its CRDs is served."""
    for gvr in DR_RESOURCES:
        if check_crd_exists(context, handle, gvr):
            return ComponentStatus.found(True, "DR CRDs found (Ramen DR)")
    return ComponentStatus.not_installed("DR components not found")


def catalog_status(context: DispatchContext, handle: EndpointHandle) -> NamespacedStatus:
    return _namespace_component(context, handle, CATALOG_NAMESPACES, "Data Catalog", "Data Catalog not found")


def cas_status(context: DispatchContext, handle: EndpointHandle) -> NamespacedStatus:
    return _namespace_component(
        context, handle, [CAS_NAMESPACE], "CAS", "Content Aware Storage not found"
    )


def serviceability_status(context: DispatchContext, handle: EndpointHandle) -> ServiceabilityStatus:
    must_gather = check_namespace_exists(context, handle, MUST_GATHER_NAMESPACE)
    logging_configured = check_namespace_exists(context, handle, LOGGING_NAMESPACE)
    if not (must_gather or logging_configured):
        return ServiceabilityStatus.not_installed("No serviceability components found")
    return ServiceabilityStatus.found(
        True,
        "Serviceability components detected",
        must_gather_available=must_gather,
        logging_configured=logging_configured,
        namespace=LOGGING_NAMESPACE if logging_configured else None,
    )


def observability_status(context: DispatchContext, handle: EndpointHandle) -> ObservabilityStatus:
    prometheus = check_namespace_exists(context, handle, MONITORING_NAMESPACE)
    grafana = check_namespace_exists(context, handle, GRAFANA_NAMESPACE)
    otel = check_crd_exists(context, handle, OTEL_COLLECTORS)
    if not (prometheus or grafana or otel):
        return ObservabilityStatus.not_installed("No observability components found")
    return ObservabilityStatus.found(
        True,
        "Observability stack detected",
        prometheus_installed=prometheus,
        grafana_installed=grafana,
        otel_installed=otel,
        namespace=MONITORING_NAMESPACE if prometheus else None,
    )


def virtualization_status(context: DispatchContext, handle: EndpointHandle) -> VirtualizationStatus:
    namespace = first_existing_namespace(context, handle, VIRTUALIZATION_NAMESPACES)
    if namespace is None:
        return VirtualizationStatus.not_installed("KubeVirt/OpenShift Virtualization not found")

    if not check_crd_exists(context, handle, VIRTUAL_MACHINES):
        return VirtualizationStatus.found(
            False, "KubeVirt namespace found but CRDs not detected", namespace=namespace
        )
    return VirtualizationStatus.found(
        True,
        "KubeVirt installed with VM CRDs",
        namespace=namespace,
        kubevirt_installed=True,
        vm_count=_count_or_zero(context, handle, VIRTUAL_MACHINES),
    )


def hcp_status(context: DispatchContext, handle: EndpointHandle) -> HCPStatus:
    namespace = first_existing_namespace(context, handle, HCP_NAMESPACES)
    if namespace is None:
        return HCPStatus.not_installed("HyperShift/HCP not found")

    if not check_crd_exists(context, handle, HOSTED_CLUSTERS):
        return HCPStatus.found(False, "HyperShift namespace found but CRDs not detected", namespace=namespace)
    return HCPStatus.found(
        True,
        "HyperShift installed with HostedCluster CRDs",
        namespace=namespace,
        hypershift_installed=True,
        hosted_cluster_count=_count_or_zero(context, handle, HOSTED_CLUSTERS),
    )
