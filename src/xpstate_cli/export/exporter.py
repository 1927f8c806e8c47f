"""Control plane state exporter.

Runs the export as a strict sequence of stages, each gating the next:

1. create a private staging directory
2. list all CRDs and keep the ones in scope
3. export the instances of every kept type into the staging directory
4. write export.yaml with per-type counts
5. pack the staging directory into the output archive

Any failure ends the run. The staging directory is removed on every exit
path, so either exactly one archive is produced or nothing is.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from ..shared.logging import get_logger
from .archive import archive_directory
from .cancel import CancelToken
from .errors import STAGE_PERSIST, STAGE_SETUP, ExportError, PersistError
from .fetcher import DEFAULT_PAGE_SIZE, UnstructuredFetcher, fetch_all_crds
from .filter import should_export
from .locator import resolve_coordinate
from .metadata import PersistentMetadataExporter
from .persister import FileSystemPersister
from .progress import ExportProgress, NullProgress
from .sources import ControlPlaneProber, CRDLister, ResourceLister, RESTMapper
from .types import CustomResourceDefinition, ExportSummary, ResourceCoordinate, TypeMeta

STAGING_PREFIX = "xpstate-"

logger = get_logger(__name__)


@dataclass
class Options:
    """Options for the exporter."""

    # Path to the archive file to be created
    output_archive: str


class UnstructuredExporter:
    """Fetches all instances of one type and hands them to a persister."""

    def __init__(self, fetcher: UnstructuredFetcher, persister: FileSystemPersister):
        self.fetcher = fetcher
        self.persister = persister

    def export_resources(self, coordinate: ResourceCoordinate, cancel: CancelToken) -> int:
        """Export every instance of the coordinate. Returns the instance count."""
        self.persister.record_type(coordinate)

        count = 0
        for obj in self.fetcher.fetch(coordinate, cancel):
            cancel.raise_if_cancelled(STAGE_PERSIST)
            self.persister.record_instance(coordinate, obj)
            count += 1
        return count


@contextmanager
def staging_directory(base_dir: str | Path | None = None) -> Iterator[Path]:
    """Create a private temporary directory and remove it on exit, whatever happens."""
    try:
        path = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=base_dir))
    except OSError as err:
        raise ExportError(
            message=f"cannot create temporary directory: {err}", stage=STAGE_SETUP
        ) from err
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


class ControlPlaneStateExporter:
    """Exports the state of a Crossplane control plane."""

    def __init__(
        self,
        crd_lister: CRDLister,
        resource_lister: ResourceLister,
        resource_mapper: RESTMapper,
        prober: ControlPlaneProber,
        options: Options,
        page_size: int = DEFAULT_PAGE_SIZE,
        progress: ExportProgress | None = None,
        temp_dir: str | Path | None = None,
    ):
        self.crd_lister = crd_lister
        self.resource_lister = resource_lister
        self.resource_mapper = resource_mapper
        self.prober = prober
        self.options = options
        self.page_size = page_size
        self.progress = progress or NullProgress()
        self.temp_dir = temp_dir

    def export(self, cancel: CancelToken | None = None) -> ExportSummary:
        """Export the state of the control plane to options.output_archive.

        Returns:
            The summary recorded in the archive

        Raises:
            ExportError: The subclass names the stage that failed.
        """
        cancel = cancel or CancelToken()
        try:
            with staging_directory(self.temp_dir) as root:
                logger.debug("staging directory created", path=str(root))
                return self._run(root, cancel)
        except ExportError as err:
            logger.error("export failed", stage=err.stage, error=err.message, **err.data)
            self.progress.failed(err.stage, err.message)
            raise

    def _run(self, root: Path, cancel: CancelToken) -> ExportSummary:
        export_list = self.discover(cancel)
        self.progress.discovered(len(export_list))
        logger.info("types discovered", count=len(export_list))

        counts = self.export_types(root, export_list, cancel)
        total = sum(counts.values())
        self.progress.exported(total)

        me = PersistentMetadataExporter(self.prober, root)
        summary = me.export_metadata(self.options.output_archive, counts, cancel)

        archive_directory(root, self.options.output_archive, cancel)
        self.progress.archived(self.options.output_archive)
        logger.info("export complete", archive=self.options.output_archive, total=total)
        return summary

    def discover(self, cancel: CancelToken) -> list[CustomResourceDefinition]:
        """List all CRDs and keep the ones whose instances are exported."""
        crds = fetch_all_crds(self.crd_lister, cancel, self.page_size)
        return [crd for crd in crds if should_export(crd)]

    def export_types(
        self,
        root: Path,
        export_list: list[CustomResourceDefinition],
        cancel: CancelToken,
    ) -> dict[str, int]:
        """Export every listed type in order. Returns counts per group-resource."""
        counts: dict[str, int] = {}
        fetcher = UnstructuredFetcher(self.resource_lister, self.page_size)

        for i, crd in enumerate(export_list):
            coordinate = resolve_coordinate(self.resource_mapper, crd)
            group_resource = coordinate.group_resource
            self.progress.exporting(i, len(export_list), group_resource)

            if group_resource in counts:
                raise PersistError(
                    message=f'type "{crd.name}" maps to already exported {group_resource}',
                    data={"type": crd.name, "resource": group_resource},
                )

            exporter = UnstructuredExporter(
                fetcher, FileSystemPersister(root, TypeMeta.for_crd(crd))
            )
            count = exporter.export_resources(coordinate, cancel)
            counts[group_resource] = count
            logger.info("type exported", resource=group_resource, count=count)

        self.progress.exporting(len(export_list), len(export_list), "")
        return counts
