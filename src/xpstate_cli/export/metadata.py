"""Top level export metadata.

export.yaml records when the export was taken, the version and feature flags
of the exported control plane and how many resources were exported per type.
An importer checks it for compatibility before touching anything and it
makes the archive inspectable by hand.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import yaml

from ..shared.logging import get_logger
from .cancel import CancelToken
from .errors import STAGE_SUMMARY, ExportError, SummaryError
from .persister import FILE_MODE
from .sources import ControlPlaneProber
from .types import ExportSummary

EXPORT_METADATA_FILE = "export.yaml"

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PersistentMetadataExporter:
    """Writes export.yaml into the staging root."""

    def __init__(
        self,
        prober: ControlPlaneProber,
        root: str | Path,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.prober = prober
        self.root = Path(root)
        self.clock = clock

    def export_metadata(
        self,
        output_archive: str,
        counts: dict[str, int],
        cancel: CancelToken,
    ) -> ExportSummary:
        """Probe the control plane and write the summary.

        Args:
            output_archive: Archive path recorded in the options section
            counts: Exported instance count per group-resource
            cancel: Checked before probing

        Returns:
            The summary that was written

        Raises:
            SummaryError: If probing or writing fails.
        """
        cancel.raise_if_cancelled(STAGE_SUMMARY)
        try:
            info = self.prober.probe(cancel)
        except ExportError:
            raise
        except Exception as err:
            raise SummaryError(message=f"cannot probe control plane: {err}") from err

        summary = ExportSummary(
            exported_at=self.clock().strftime("%Y-%m-%dT%H:%M:%SZ"),
            output_archive=output_archive,
            control_plane=info,
            resource_counts=dict(counts),
        )

        path = self.root / EXPORT_METADATA_FILE
        try:
            data = yaml.safe_dump(summary.to_dict(), default_flow_style=False, sort_keys=False)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
            with os.fdopen(fd, "w") as f:
                f.write(data)
        except (OSError, yaml.YAMLError) as err:
            raise SummaryError(
                message=f"cannot write {EXPORT_METADATA_FILE}: {err}",
                data={"path": str(path)},
            ) from err

        logger.info(
            "summary written",
            total=summary.total,
            types=len(counts),
            crossplane_version=info.version,
        )
        return summary
