"""Kubernetes client adapters for the exporter.

Wraps the official kubernetes client behind the small list/map/probe
interfaces the exporter consumes. Everything is converted to plain dicts
at this boundary.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException
from kubernetes.dynamic import DynamicClient

from ..export.cancel import CancelToken
from ..export.errors import STAGE_SUMMARY
from ..export.exporter import ControlPlaneStateExporter, Options
from ..export.fetcher import DEFAULT_PAGE_SIZE
from ..export.progress import ExportProgress
from ..export.types import ControlPlaneInfo, ListPage, ResourceCoordinate
from ..shared.logging import get_logger
from ..shared.paths import default_kubeconfig_path

# Label carried by the Crossplane core deployment
CROSSPLANE_SELECTOR = "app=crossplane"

# Container arguments that toggle Crossplane features
FEATURE_FLAG_PREFIX = "--enable-"

logger = get_logger(__name__)


def load_api_client(kubeconfig: str | None = None, context: str | None = None) -> client.ApiClient:
    """Construct an API client from a kubeconfig, or fall back to the same defaults as kubectl.

    Args:
        kubeconfig: Explicit kubeconfig path ($KUBECONFIG / ~/.kube/config if not set)
        context: Context to use instead of the current one

    Returns:
        Configured ApiClient

    Raises:
        ConfigException: If no usable configuration is found.
    """
    if kubeconfig:
        path = Path(kubeconfig).expanduser()
        if not path.exists():
            raise ConfigException(f"kubeconfig {path} does not exist")
        return config.new_client_from_config(config_file=str(path), context=context)

    if default_kubeconfig_path().exists():
        # Lets the client merge every file listed in $KUBECONFIG
        return config.new_client_from_config(context=context)

    if os.environ.get("KUBERNETES_SERVICE_HOST"):
        configuration = client.Configuration()
        config.load_incluster_config(client_configuration=configuration)
        return client.ApiClient(configuration=configuration)

    raise ConfigException(
        f"no kubeconfig found at {default_kubeconfig_path()} and not running in a cluster"
    )


def _list_kwargs(limit: int, continue_token: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"limit": limit}
    if continue_token:
        kwargs["_continue"] = continue_token
    return kwargs


class KubeCRDLister:
    """Lists apiextensions.k8s.io/v1 CustomResourceDefinitions."""

    def __init__(self, api_client: client.ApiClient):
        self.api_client = api_client
        self.api = client.ApiextensionsV1Api(api_client)

    def list_crds(self, *, limit: int, continue_token: str, cancel: CancelToken) -> ListPage:
        result = self.api.list_custom_resource_definition(**_list_kwargs(limit, continue_token))
        items = [self.api_client.sanitize_for_serialization(crd) for crd in result.items]
        return ListPage(items=items, continue_token=result.metadata._continue or "")


class DynamicRESTMapper:
    """Maps (group, kind, version) to a resource using API discovery."""

    def __init__(self, dynamic: DynamicClient):
        self.dynamic = dynamic

    def rest_mapping(self, group: str, kind: str, version: str) -> ResourceCoordinate:
        if not version:
            raise LookupError(f"no version given for kind {kind!r} in group {group!r}")
        api_version = f"{group}/{version}" if group else version
        resource = self.dynamic.resources.get(api_version=api_version, kind=kind)
        return ResourceCoordinate(
            group=resource.group or "",
            version=resource.api_version,
            resource=resource.name,
        )


class DynamicResourceLister:
    """Lists instances of any resource through the dynamic client."""

    def __init__(self, dynamic: DynamicClient):
        self.dynamic = dynamic
        self._resources: dict[ResourceCoordinate, Any] = {}

    def _resource(self, coordinate: ResourceCoordinate) -> Any:
        if coordinate not in self._resources:
            self._resources[coordinate] = self.dynamic.resources.get(
                api_version=coordinate.api_version, name=coordinate.resource
            )
        return self._resources[coordinate]

    def list_resources(
        self,
        coordinate: ResourceCoordinate,
        *,
        limit: int,
        continue_token: str,
        cancel: CancelToken,
    ) -> ListPage:
        api = self._resource(coordinate)
        data = self.dynamic.get(api, **_list_kwargs(limit, continue_token)).to_dict()
        metadata = data.get("metadata") or {}
        return ListPage(
            items=data.get("items") or [],
            continue_token=metadata.get("continue") or "",
        )


def control_plane_info(deployment: dict[str, Any]) -> ControlPlaneInfo:
    """Read version and feature flags from an unstructured Crossplane deployment."""
    metadata = deployment.get("metadata") or {}
    pod_spec = ((deployment.get("spec") or {}).get("template") or {}).get("spec") or {}
    containers = pod_spec.get("containers") or []

    version = "unknown"
    flags: set[str] = set()
    if containers:
        image = containers[0].get("image") or ""
        # Strip a registry port before looking for the tag
        _, _, last = image.rpartition("/")
        if "@" in last:
            last = last.split("@", 1)[0]
        if ":" in last:
            version = last.rsplit(":", 1)[1]
        for arg in containers[0].get("args") or []:
            if arg.startswith(FEATURE_FLAG_PREFIX):
                flags.add(arg.split("=", 1)[0])

    return ControlPlaneInfo(
        version=version,
        namespace=metadata.get("namespace", ""),
        feature_flags=sorted(flags),
    )


class DeploymentProber:
    """Finds the Crossplane deployment and reports its version and feature flags."""

    def __init__(self, api_client: client.ApiClient, label_selector: str = CROSSPLANE_SELECTOR):
        self.api_client = api_client
        self.apps = client.AppsV1Api(api_client)
        self.label_selector = label_selector

    def probe(self, cancel: CancelToken) -> ControlPlaneInfo:
        cancel.raise_if_cancelled(STAGE_SUMMARY)
        result = self.apps.list_deployment_for_all_namespaces(label_selector=self.label_selector)
        if not result.items:
            raise LookupError(f"cannot find Crossplane deployment ({self.label_selector})")
        if len(result.items) > 1:
            logger.warning(
                "multiple Crossplane deployments found, using the first",
                count=len(result.items),
            )
        deployment = self.api_client.sanitize_for_serialization(result.items[0])
        return control_plane_info(deployment)


def build_exporter(
    api_client: client.ApiClient,
    options: Options,
    page_size: int = DEFAULT_PAGE_SIZE,
    progress: ExportProgress | None = None,
) -> ControlPlaneStateExporter:
    """Wire a ControlPlaneStateExporter to a live cluster."""
    dynamic = DynamicClient(api_client)
    return ControlPlaneStateExporter(
        crd_lister=KubeCRDLister(api_client),
        resource_lister=DynamicResourceLister(dynamic),
        resource_mapper=DynamicRESTMapper(dynamic),
        prober=DeploymentProber(api_client),
        options=options,
        page_size=page_size,
        progress=progress,
    )
