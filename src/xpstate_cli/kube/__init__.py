"""Kubernetes access for xpstate-cli."""

from .client import (
    DeploymentProber,
    DynamicResourceLister,
    DynamicRESTMapper,
    KubeCRDLister,
    build_exporter,
    control_plane_info,
    load_api_client,
)
from .kubeconfig import (
    apply_control_plane_kubeconfig,
    build_control_plane_kubeconfig,
    control_plane_key,
    merge_kubeconfig,
)

__all__ = [
    # Clients
    "load_api_client",
    "build_exporter",
    "KubeCRDLister",
    "DynamicRESTMapper",
    "DynamicResourceLister",
    "DeploymentProber",
    "control_plane_info",
    # Kubeconfig
    "build_control_plane_kubeconfig",
    "apply_control_plane_kubeconfig",
    "merge_kubeconfig",
    "control_plane_key",
]
