"""Collaborators the exporter reads the control plane through.

The live implementations wrap the Kubernetes client (see xpstate_cli.kube);
tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol

from .cancel import CancelToken
from .types import ControlPlaneInfo, ListPage, ResourceCoordinate


class CRDLister(Protocol):
    """Lists CustomResourceDefinitions one page at a time."""

    def list_crds(self, *, limit: int, continue_token: str, cancel: CancelToken) -> ListPage: ...


class ResourceLister(Protocol):
    """Lists instances of a resource one page at a time."""

    def list_resources(
        self,
        coordinate: ResourceCoordinate,
        *,
        limit: int,
        continue_token: str,
        cancel: CancelToken,
    ) -> ListPage: ...


class RESTMapper(Protocol):
    """Resolves a (group, kind, version) to the resource serving it."""

    def rest_mapping(self, group: str, kind: str, version: str) -> ResourceCoordinate: ...


class ControlPlaneProber(Protocol):
    """Reads version and feature flags of the running control plane."""

    def probe(self, cancel: CancelToken) -> ControlPlaneInfo: ...
