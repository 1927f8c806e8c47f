"""Control plane state export.

Discovers the Crossplane types of a cluster, writes every instance into a
staging directory together with per-type and export-wide metadata, and
packs the result into a single .tar.gz.
"""

from .cancel import CancelToken
from .errors import (
    ArchiveError,
    DiscoveryError,
    ExportCancelled,
    ExportError,
    FetchError,
    PersistError,
    ResolutionError,
    SummaryError,
)
from .exporter import ControlPlaneStateExporter, Options, UnstructuredExporter
from .fetcher import DEFAULT_PAGE_SIZE, UnstructuredFetcher
from .filter import PACKAGE_API_GROUP, RESERVED_DOMAIN_SUFFIX, should_export
from .progress import ExportProgress, NullProgress
from .types import (
    ControlPlaneInfo,
    CustomResourceDefinition,
    ExportSummary,
    ListPage,
    ResourceCoordinate,
    TypeMeta,
)

__all__ = [
    # Exporter
    "ControlPlaneStateExporter",
    "Options",
    "UnstructuredExporter",
    "UnstructuredFetcher",
    "DEFAULT_PAGE_SIZE",
    "CancelToken",
    # Filtering
    "should_export",
    "PACKAGE_API_GROUP",
    "RESERVED_DOMAIN_SUFFIX",
    # Progress
    "ExportProgress",
    "NullProgress",
    # Types
    "ControlPlaneInfo",
    "CustomResourceDefinition",
    "ExportSummary",
    "ListPage",
    "ResourceCoordinate",
    "TypeMeta",
    # Errors
    "ExportError",
    "DiscoveryError",
    "ResolutionError",
    "FetchError",
    "PersistError",
    "SummaryError",
    "ArchiveError",
    "ExportCancelled",
]
