"""Test mocks for xpstate-cli.

Provides fake implementations for testing:
- FakeControlPlane: in-memory CRD/instance lists, REST mapping and probing
"""

from .fake_control_plane import FakeControlPlane, make_crd, make_instance, package_owner

__all__ = ["FakeControlPlane", "make_crd", "make_instance", "package_owner"]
