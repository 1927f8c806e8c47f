"""Data types shared by the export pipeline.

Type definitions and instances travel through the pipeline as plain dicts
(the unstructured form returned by the API server). Only the handful of
CRD fields the pipeline acts on are parsed into dataclasses here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Export format version written into export.yaml
EXPORT_FORMAT_VERSION = "v1alpha1"

# Unstructured Kubernetes object
Unstructured = dict[str, Any]


@dataclass(frozen=True)
class ResourceCoordinate:
    """Concrete (group, version, resource) coordinate of a stored type."""

    group: str
    version: str
    resource: str

    @property
    def group_resource(self) -> str:
        """Kubernetes group-resource string, e.g. compositions.apiextensions.crossplane.io"""
        if not self.group:
            return self.resource
        return f"{self.resource}.{self.group}"

    @property
    def api_version(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return f"{self.group_resource}/{self.version}"


@dataclass(frozen=True)
class OwnerReference:
    """The parts of a metadata.ownerReferences entry used for filtering."""

    api_version: str
    kind: str = ""
    name: str = ""

    @property
    def group(self) -> str:
        """API group of the owner (empty for the core group)."""
        if "/" not in self.api_version:
            return ""
        return self.api_version.split("/", 1)[0]


@dataclass(frozen=True)
class CRDVersion:
    """One entry of spec.versions."""

    name: str
    storage: bool = False
    has_status_subresource: bool = False


@dataclass
class CustomResourceDefinition:
    """A CustomResourceDefinition reduced to what the exporter needs."""

    name: str
    group: str
    kind: str
    categories: list[str] = field(default_factory=list)
    versions: list[CRDVersion] = field(default_factory=list)
    owner_references: list[OwnerReference] = field(default_factory=list)

    @classmethod
    def from_dict(cls, obj: Unstructured) -> CustomResourceDefinition:
        """Parse an unstructured apiextensions.k8s.io/v1 CustomResourceDefinition."""
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        names = spec.get("names") or {}

        versions = []
        for vr in spec.get("versions") or []:
            status = (vr.get("subresources") or {}).get("status")
            versions.append(
                CRDVersion(
                    name=vr.get("name", ""),
                    storage=bool(vr.get("storage", False)),
                    has_status_subresource=status is not None,
                )
            )

        owners = [
            OwnerReference(
                api_version=ref.get("apiVersion", ""),
                kind=ref.get("kind", ""),
                name=ref.get("name", ""),
            )
            for ref in metadata.get("ownerReferences") or []
        ]

        return cls(
            name=metadata.get("name", ""),
            group=spec.get("group", ""),
            kind=names.get("kind", ""),
            categories=list(names.get("categories") or []),
            versions=versions,
            owner_references=owners,
        )

    @property
    def storage_version(self) -> CRDVersion | None:
        """The version flagged as storage, or None if there is none."""
        storage = None
        for vr in self.versions:
            if vr.storage:
                storage = vr
        return storage

    @property
    def has_status_subresource(self) -> bool:
        """Whether the storage version declares a status subresource."""
        storage = self.storage_version
        return storage is not None and storage.has_status_subresource


@dataclass(frozen=True)
class TypeMeta:
    """Per-type descriptor stored next to the exported instances.

    An importer uses with_status_subresource to decide whether status has to
    be applied separately from spec.
    """

    categories: frozenset[str] = frozenset()
    with_status_subresource: bool = False

    @classmethod
    def for_crd(cls, crd: CustomResourceDefinition) -> TypeMeta:
        return cls(
            categories=frozenset(crd.categories),
            with_status_subresource=crd.has_status_subresource,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": sorted(self.categories),
            "withStatusSubresource": self.with_status_subresource,
        }


@dataclass
class ListPage:
    """One page of a paginated list call."""

    items: list[Unstructured] = field(default_factory=list)
    continue_token: str = ""


@dataclass
class ControlPlaneInfo:
    """Version and feature flags of the exported control plane."""

    version: str = "unknown"
    namespace: str = ""
    feature_flags: list[str] = field(default_factory=list)


@dataclass
class ExportSummary:
    """Top level metadata of an export, written once after all types."""

    exported_at: str
    output_archive: str
    control_plane: ControlPlaneInfo
    resource_counts: dict[str, int] = field(default_factory=dict)
    version: str = EXPORT_FORMAT_VERSION

    @property
    def total(self) -> int:
        return sum(self.resource_counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "exportedAt": self.exported_at,
            "options": {"outputArchive": self.output_archive},
            "crossplane": {
                "version": self.control_plane.version,
                "namespace": self.control_plane.namespace,
                "featureFlags": list(self.control_plane.feature_flags),
            },
            "stats": {
                "total": self.total,
                "customResources": dict(self.resource_counts),
            },
        }
