"""Shared test fixtures for xpstate-cli tests."""

import pytest

from tests.mocks import FakeControlPlane, package_owner


@pytest.fixture
def control_plane() -> FakeControlPlane:
    """Fixture providing an empty fake control plane."""
    return FakeControlPlane()


@pytest.fixture
def populated_control_plane() -> FakeControlPlane:
    """Three in-scope types with 5, 0 and 2 instances, plus one foreign type.

    The third type declares a status subresource on its storage version.
    """
    cp = FakeControlPlane()
    cp.add_type(
        "compositions",
        "apiextensions.crossplane.io",
        "Composition",
        5,
        categories=["crossplane"],
    )
    cp.add_type(
        "buckets",
        "s3.aws.upbound.io",
        "Bucket",
        0,
        owners=[package_owner()],
        categories=["crossplane", "managed", "aws"],
    )
    cp.add_type(
        "xpostgresqlinstances",
        "database.example.crossplane.io",
        "XPostgreSQLInstance",
        2,
        status=True,
    )
    cp.add_type("certificates", "cert-manager.io", "Certificate", 3, namespaced=True)
    return cp


@pytest.fixture
def staging_base(tmp_path):
    """Directory the exporter creates its staging directory in."""
    base = tmp_path / "tmp"
    base.mkdir()
    return base
