"""Error types for the control plane state export.

Every stage of an export run has its own error class. All of them are fatal:
the run stops, the staging directory is removed and no archive is left behind.
"""

from dataclasses import dataclass, field
from typing import Any

# Stage names, as reported to the user
STAGE_SETUP = "setup"
STAGE_DISCOVERY = "discovery"
STAGE_RESOLUTION = "resolution"
STAGE_FETCH = "fetch"
STAGE_PERSIST = "persist"
STAGE_SUMMARY = "summary"
STAGE_ARCHIVE = "archive"


@dataclass
class ExportError(Exception):
    """Base error class for export errors."""

    message: str
    stage: str = STAGE_SETUP
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        """Human readable one-liner naming the failed stage."""
        return f"{self.stage} failed: {self.message}"


@dataclass
class DiscoveryError(ExportError):
    """Listing or paging the type definitions failed."""

    stage: str = STAGE_DISCOVERY


@dataclass
class ResolutionError(ExportError):
    """A type has no storage version or its REST mapping failed."""

    stage: str = STAGE_RESOLUTION


@dataclass
class FetchError(ExportError):
    """Listing instances of a resolved resource failed."""

    stage: str = STAGE_FETCH


@dataclass
class PersistError(ExportError):
    """Writing a type descriptor or an instance to the staging root failed."""

    stage: str = STAGE_PERSIST


@dataclass
class SummaryError(ExportError):
    """Probing the control plane or writing the export summary failed."""

    stage: str = STAGE_SUMMARY


@dataclass
class ArchiveError(ExportError):
    """Creating or writing the output archive failed."""

    stage: str = STAGE_ARCHIVE


@dataclass
class ExportCancelled(ExportError):
    """The run was cancelled through its cancel token."""

    message: str = "export cancelled"
