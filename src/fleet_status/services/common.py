"""
Shared helpers for domain status checks.

Every check is a read-only existence probe against one endpoint. Each
call passes the remaining time of the bounded DispatchContext to the
client as ``_request_timeout``, so an expired context stops new calls.
"""

import logging
from typing import Any, NamedTuple

from kubernetes import client
from kubernetes.client.rest import ApiException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from fleet_status.core.registry import EndpointHandle
from fleet_status.framework.dispatch import DispatchContext

logger = logging.getLogger(__name__)


class GroupVersionResource(NamedTuple):
    """Identifies an API resource served by a cluster."""

    group: str
    version: str
    resource: str

    @property
    def group_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


class StatusModel(BaseModel):
    """Base for status payloads; serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ComponentStatus(StatusModel):
    """Installation and readiness of one component on one endpoint."""

    installed: bool = False
    ready: bool = False
    version: str | None = None
    message: str | None = None

    @classmethod
    def not_installed(cls, message: str, **fields: Any):
        """Status for a component that was not found."""
        return cls(installed=False, ready=False, message=message, **fields)

    @classmethod
    def found(cls, ready: bool, message: str | None = None, **fields: Any):
        """Status for a component that was found."""
        return cls(installed=True, ready=ready, message=message, **fields)


def core_api(handle: EndpointHandle) -> client.CoreV1Api:
    return client.CoreV1Api(handle.connection)


def check_namespace_exists(context: DispatchContext, handle: EndpointHandle, namespace: str) -> bool:
    """Check if a namespace exists; API errors (404, 403) count as absent."""
    try:
        core_api(handle).read_namespace(namespace, _request_timeout=context.request_timeout())
    except ApiException as e:
        logger.debug("Namespace %s not readable on %s: %s", namespace, handle.name, e.status)
        return False
    return True


def first_existing_namespace(
    context: DispatchContext, handle: EndpointHandle, namespaces: list[str]
) -> str | None:
    """Return the first namespace of ``namespaces`` present on the endpoint."""
    for namespace in namespaces:
        if check_namespace_exists(context, handle, namespace):
            return namespace
    return None


def check_crd_exists(context: DispatchContext, handle: EndpointHandle, gvr: GroupVersionResource) -> bool:
    """Check if the endpoint serves ``gvr`` using API discovery."""
    try:
        resources = handle.connection.call_api(
            "/apis/{group}/{version}",
            "GET",
            path_params={"group": gvr.group, "version": gvr.version},
            header_params={"Accept": "application/json"},
            response_type="object",
            auth_settings=["BearerToken"],
            _return_http_data_only=True,
            _request_timeout=context.request_timeout(),
        )
    except ApiException as e:
        logger.debug("Discovery of %s failed on %s: %s", gvr.group_version, handle.name, e.status)
        return False

    names = {item.get("name") for item in (resources or {}).get("resources", [])}
    return gvr.resource in names


def count_pods(
    context: DispatchContext, handle: EndpointHandle, namespace: str, label_selector: str
) -> int:
    """Number of pods in ``namespace`` matching ``label_selector``."""
    pods = core_api(handle).list_namespaced_pod(
        namespace, label_selector=label_selector, _request_timeout=context.request_timeout()
    )
    return len(pods.items)


def count_custom_objects(context: DispatchContext, handle: EndpointHandle, gvr: GroupVersionResource) -> int:
    """Number of cluster-wide custom objects of ``gvr``."""
    objects = client.CustomObjectsApi(handle.connection).list_cluster_custom_object(
        gvr.group, gvr.version, gvr.resource, _request_timeout=context.request_timeout()
    )
    return len(objects.get("items", []))
