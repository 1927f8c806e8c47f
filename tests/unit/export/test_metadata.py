"""Unit tests for the export metadata file."""

from datetime import datetime, timezone

import pytest
import yaml

from xpstate_cli.export import CancelToken, ExportCancelled, SummaryError
from xpstate_cli.export.metadata import EXPORT_METADATA_FILE, PersistentMetadataExporter

FIXED_TIME = datetime(2024, 5, 1, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def metadata_exporter(control_plane, tmp_path) -> PersistentMetadataExporter:
    return PersistentMetadataExporter(control_plane, tmp_path, clock=lambda: FIXED_TIME)


class TestExportMetadata:
    """Tests for PersistentMetadataExporter."""

    def test_writes_export_yaml(self, metadata_exporter, tmp_path):
        counts = {"compositions.apiextensions.crossplane.io": 5, "buckets.s3.aws.upbound.io": 0}

        summary = metadata_exporter.export_metadata("out.tar.gz", counts, CancelToken())

        data = yaml.safe_load((tmp_path / EXPORT_METADATA_FILE).read_text())
        assert data == {
            "version": "v1alpha1",
            "exportedAt": "2024-05-01T10:30:00Z",
            "options": {"outputArchive": "out.tar.gz"},
            "crossplane": {
                "version": "v1.14.5",
                "namespace": "crossplane-system",
                "featureFlags": ["--enable-usages"],
            },
            "stats": {"total": 5, "customResources": counts},
        }
        assert summary.total == 5

    def test_counts_are_copied(self, metadata_exporter):
        """Later changes to the caller's dict do not leak into the summary."""
        counts = {"a.x.io": 1}
        summary = metadata_exporter.export_metadata("out.tar.gz", counts, CancelToken())
        counts["a.x.io"] = 100
        assert summary.resource_counts == {"a.x.io": 1}

    def test_probe_failure(self, metadata_exporter, control_plane, tmp_path):
        control_plane.fail_probe = True

        with pytest.raises(SummaryError) as exc_info:
            metadata_exporter.export_metadata("out.tar.gz", {}, CancelToken())

        assert "cannot probe control plane" in exc_info.value.message
        assert not (tmp_path / EXPORT_METADATA_FILE).exists()

    def test_written_once(self, metadata_exporter):
        """The summary is write-once; a second write fails."""
        metadata_exporter.export_metadata("out.tar.gz", {}, CancelToken())

        with pytest.raises(SummaryError):
            metadata_exporter.export_metadata("out.tar.gz", {}, CancelToken())

    def test_cancelled(self, metadata_exporter, tmp_path):
        cancel = CancelToken()
        cancel.cancel()

        with pytest.raises(ExportCancelled):
            metadata_exporter.export_metadata("out.tar.gz", {}, cancel)

        assert not (tmp_path / EXPORT_METADATA_FILE).exists()
