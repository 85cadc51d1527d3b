"""Providers that populate the endpoint registry."""

from .kubernetes import (
    IN_CLUSTER_ENDPOINT,
    build_registry,
    register_context,
    register_from_kubeconfig,
    register_in_cluster,
)

__all__ = [
    "IN_CLUSTER_ENDPOINT",
    "build_registry",
    "register_context",
    "register_from_kubeconfig",
    "register_in_cluster",
]
