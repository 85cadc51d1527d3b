"""
Storage status checks.

Summarizes storage classes and persistent volume claims on an endpoint and
detects OpenShift Data Foundation (ODF/OCS).
"""

import logging
from collections import Counter

from kubernetes import client
from kubernetes.client.rest import ApiException
from pydantic import Field

from fleet_status.core.registry import EndpointHandle
from fleet_status.framework.dispatch import DispatchContext

from .common import (
    ComponentStatus,
    GroupVersionResource,
    StatusModel,
    check_crd_exists,
    count_pods,
    first_existing_namespace,
)

logger = logging.getLogger(__name__)

DEFAULT_CLASS_ANNOTATIONS = (
    "storageclass.kubernetes.io/is-default-class",
    "storageclass.beta.kubernetes.io/is-default-class",
)

ODF_NAMESPACES = ["openshift-storage", "openshift-data-foundation"]
ODF_OPERATOR_SELECTOR = "app=odf-operator"
ODF_PROVISIONERS = frozenset(
    {
        "openshift-storage.rbd.csi.ceph.com",
        "openshift-storage.cephfs.csi.ceph.com",
        "ocs-storagecluster-ceph-rbd",
        "ocs-storagecluster-cephfs",
    }
)
CEPH_CLUSTERS = GroupVersionResource("ceph.rook.io", "v1", "cephclusters")


class StorageClassInfo(StatusModel):
    name: str
    provisioner: str
    is_default: bool = False
    odf: bool = False


class PVCSummary(StatusModel):
    total: int = 0
    bound: int = 0
    pending: int = 0
    lost: int = 0


class StorageSummary(StatusModel):
    """Storage classes and claim counts of one endpoint."""

    storage_classes: list[StorageClassInfo] = Field(default_factory=list)
    default_storage_class: str | None = None
    pvcs: PVCSummary = Field(default_factory=PVCSummary)
    odf_detected: bool = False


class DataFoundationStatus(ComponentStatus):
    namespace: str | None = None
    storage_classes: list[str] = Field(default_factory=list)
    ceph_health: str | None = None


def _is_default_class(storage_class) -> bool:
    annotations = storage_class.metadata.annotations or {}
    return any(annotations.get(key) == "true" for key in DEFAULT_CLASS_ANNOTATIONS)


def storage_summary(context: DispatchContext, handle: EndpointHandle) -> StorageSummary:
    """List storage classes and count PVCs by phase across all namespaces."""
    classes = client.StorageV1Api(handle.connection).list_storage_class(
        _request_timeout=context.request_timeout()
    )
    summary = StorageSummary()
    for sc in classes.items:
        info = StorageClassInfo(
            name=sc.metadata.name,
            provisioner=sc.provisioner,
            is_default=_is_default_class(sc),
            odf=sc.provisioner in ODF_PROVISIONERS,
        )
        summary.storage_classes.append(info)
        if info.is_default and summary.default_storage_class is None:
            summary.default_storage_class = info.name
    summary.odf_detected = any(info.odf for info in summary.storage_classes)

    context.check()
    claims = client.CoreV1Api(handle.connection).list_persistent_volume_claim_for_all_namespaces(
        _request_timeout=context.request_timeout()
    )
    phases = Counter((pvc.status.phase if pvc.status else None) or "Unknown" for pvc in claims.items)
    summary.pvcs = PVCSummary(
        total=len(claims.items),
        bound=phases["Bound"],
        pending=phases["Pending"],
        lost=phases["Lost"],
    )
    return summary


def data_foundation_status(context: DispatchContext, handle: EndpointHandle) -> DataFoundationStatus:
    """Detect ODF by namespace, operator pods, storage classes and the Ceph CRD."""
    namespace = first_existing_namespace(context, handle, ODF_NAMESPACES)
    if namespace is None:
        return DataFoundationStatus.not_installed("ODF/OCS namespace not found")

    try:
        pod_count = count_pods(context, handle, namespace, ODF_OPERATOR_SELECTOR)
    except ApiException as e:
        logger.debug("Listing ODF operator pods failed on %s: %s", handle.name, e.status)
        pod_count = 0

    if pod_count > 0:
        status = DataFoundationStatus.found(
            True, f"ODF operator running with {pod_count} pods", namespace=namespace
        )
    else:
        status = DataFoundationStatus.found(False, "ODF operator not found or not ready", namespace=namespace)

    try:
        classes = client.StorageV1Api(handle.connection).list_storage_class(
            _request_timeout=context.request_timeout()
        )
    except ApiException as e:
        logger.debug("Listing storage classes failed on %s: %s", handle.name, e.status)
    else:
        status.storage_classes = [sc.metadata.name for sc in classes.items if sc.provisioner in ODF_PROVISIONERS]

    if check_crd_exists(context, handle, CEPH_CLUSTERS):
        status.ceph_health = "CRD exists (detailed health check not implemented)"
    return status
