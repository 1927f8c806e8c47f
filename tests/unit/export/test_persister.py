"""Unit tests for FileSystemPersister."""

import stat

import pytest
import yaml

from xpstate_cli.export import PersistError, ResourceCoordinate, TypeMeta
from xpstate_cli.export.persister import FileSystemPersister

from tests.mocks import make_instance

BUCKETS = ResourceCoordinate("s3.aws.upbound.io", "v1", "buckets")


@pytest.fixture
def persister(tmp_path) -> FileSystemPersister:
    meta = TypeMeta(categories=frozenset({"managed", "aws"}), with_status_subresource=True)
    return FileSystemPersister(tmp_path, meta)


class TestRecordType:
    """Tests for writing the type descriptor."""

    def test_writes_metadata(self, persister, tmp_path):
        path = persister.record_type(BUCKETS)

        assert path == tmp_path / "buckets.s3.aws.upbound.io" / "metadata.yaml"
        assert yaml.safe_load(path.read_text()) == {
            "categories": ["aws", "managed"],
            "withStatusSubresource": True,
        }

    def test_rerun_is_harmless(self, persister):
        """Recording the same descriptor twice leaves identical content."""
        first = persister.record_type(BUCKETS).read_text()
        second = persister.record_type(BUCKETS).read_text()
        assert first == second


class TestRecordInstance:
    """Tests for writing instances."""

    def test_cluster_scoped_path(self, persister, tmp_path):
        obj = make_instance("s3.aws.upbound.io/v1", "Bucket", "logs")
        path = persister.record_instance(BUCKETS, obj)

        assert path == tmp_path / "buckets.s3.aws.upbound.io" / "cluster" / "logs.yaml"

    def test_namespaced_path(self, persister, tmp_path):
        obj = make_instance("s3.aws.upbound.io/v1", "Bucket", "logs", namespace="team-a")
        path = persister.record_instance(BUCKETS, obj)

        assert path == (
            tmp_path / "buckets.s3.aws.upbound.io" / "namespaces" / "team-a" / "logs.yaml"
        )

    def test_content_round_trips(self, persister):
        """The stored document equals the instance, key order included."""
        obj = make_instance("s3.aws.upbound.io/v1", "Bucket", "logs")
        obj["status"] = {"atProvider": {"arn": "arn:aws:s3:::logs"}, "conditions": []}

        path = persister.record_instance(BUCKETS, obj)
        loaded = yaml.safe_load(path.read_text())

        assert loaded == obj
        assert list(loaded) == list(obj)

    def test_files_owner_only(self, persister):
        path = persister.record_instance(
            BUCKETS, make_instance("s3.aws.upbound.io/v1", "Bucket", "logs")
        )
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_collision_is_fatal(self, persister):
        """A second instance with the same name in the same scope is rejected."""
        obj = make_instance("s3.aws.upbound.io/v1", "Bucket", "logs")
        persister.record_instance(BUCKETS, obj)

        with pytest.raises(PersistError) as exc_info:
            persister.record_instance(BUCKETS, {**obj, "spec": {"other": True}})

        assert "duplicate" in exc_info.value.message

    def test_same_name_other_namespace(self, persister):
        """Equal names in different namespaces do not collide."""
        persister.record_instance(
            BUCKETS, make_instance("s3.aws.upbound.io/v1", "Bucket", "logs", namespace="a")
        )
        persister.record_instance(
            BUCKETS, make_instance("s3.aws.upbound.io/v1", "Bucket", "logs", namespace="b")
        )

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b"])
    def test_invalid_name(self, persister, name):
        obj = make_instance("s3.aws.upbound.io/v1", "Bucket", "x")
        obj["metadata"]["name"] = name

        with pytest.raises(PersistError):
            persister.record_instance(BUCKETS, obj)

    def test_unwritable_root(self, tmp_path):
        """Filesystem errors surface as PersistError."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        persister = FileSystemPersister(blocker, TypeMeta())

        with pytest.raises(PersistError):
            persister.record_instance(
                BUCKETS, make_instance("s3.aws.upbound.io/v1", "Bucket", "logs")
            )
