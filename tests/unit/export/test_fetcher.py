"""Unit tests for paginated listing."""

import pytest

from xpstate_cli.export import (
    CancelToken,
    DiscoveryError,
    ExportCancelled,
    FetchError,
    ResourceCoordinate,
    UnstructuredFetcher,
)
from xpstate_cli.export.fetcher import fetch_all_crds

from tests.mocks import FakeControlPlane


@pytest.fixture
def widgets(control_plane: FakeControlPlane) -> ResourceCoordinate:
    return control_plane.add_type("widgets", "example.crossplane.io", "Widget", 10)


class TestUnstructuredFetcher:
    """Tests for UnstructuredFetcher."""

    @pytest.mark.parametrize("page_size", [1, 3, 4, 10, 11, 500])
    def test_fetches_every_item_once(self, control_plane, widgets, page_size):
        """All items come back once, in server order, for any page size."""
        fetcher = UnstructuredFetcher(control_plane, page_size=page_size)

        names = [obj["metadata"]["name"] for obj in fetcher.fetch(widgets, CancelToken())]

        assert names == [f"widgets-{i}" for i in range(10)]

    def test_page_size_and_tokens(self, control_plane, widgets):
        """Every call uses the page size and the previous continue token."""
        fetcher = UnstructuredFetcher(control_plane, page_size=4)
        list(fetcher.fetch(widgets, CancelToken()))

        assert control_plane.list_calls == [
            ("widgets.example.crossplane.io", 4, ""),
            ("widgets.example.crossplane.io", 4, "4"),
            ("widgets.example.crossplane.io", 4, "8"),
        ]

    def test_empty_listing(self, control_plane):
        """A type without instances yields nothing after one call."""
        empty = control_plane.add_type("things", "example.crossplane.io", "Thing", 0)
        fetcher = UnstructuredFetcher(control_plane, page_size=5)

        assert list(fetcher.fetch(empty, CancelToken())) == []
        assert len(control_plane.list_calls) == 1

    def test_lazy(self, control_plane, widgets):
        """Nothing is listed until the iterator is consumed."""
        fetcher = UnstructuredFetcher(control_plane, page_size=2)
        items = fetcher.fetch(widgets, CancelToken())
        assert control_plane.list_calls == []

        next(items)
        assert len(control_plane.list_calls) == 1

    def test_page_failure(self, control_plane, widgets):
        """A failing page aborts with a FetchError naming the resource."""
        control_plane.fail_resource = widgets.group_resource
        fetcher = UnstructuredFetcher(control_plane, page_size=2)

        with pytest.raises(FetchError) as exc_info:
            list(fetcher.fetch(widgets, CancelToken()))

        assert exc_info.value.data["resource"] == "widgets.example.crossplane.io"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_cancelled_between_pages(self, control_plane, widgets):
        """Cancellation stops the listing at the next page boundary."""
        cancel = CancelToken()
        control_plane.cancel_token = cancel
        control_plane.cancel_after_pages = 2
        fetcher = UnstructuredFetcher(control_plane, page_size=3)

        seen = []
        with pytest.raises(ExportCancelled):
            for obj in fetcher.fetch(widgets, cancel):
                seen.append(obj)

        assert len(seen) == 6
        assert len(control_plane.list_calls) == 2

    def test_invalid_page_size(self, control_plane, widgets):
        fetcher = UnstructuredFetcher(control_plane, page_size=0)
        with pytest.raises(ValueError):
            list(fetcher.fetch(widgets, CancelToken()))


class TestFetchAllCRDs:
    """Tests for CRD discovery."""

    def test_all_pages(self, populated_control_plane):
        """CRDs from every page are returned and parsed."""
        crds = fetch_all_crds(populated_control_plane, CancelToken(), page_size=1)

        assert [crd.name for crd in crds] == [
            "compositions.apiextensions.crossplane.io",
            "buckets.s3.aws.upbound.io",
            "xpostgresqlinstances.database.example.crossplane.io",
            "certificates.cert-manager.io",
        ]
        assert len(populated_control_plane.list_calls) == 4

    def test_failure_on_later_page(self, populated_control_plane):
        """A failure on any page is a DiscoveryError."""
        populated_control_plane.fail_crd_page = 2

        with pytest.raises(DiscoveryError) as exc_info:
            fetch_all_crds(populated_control_plane, CancelToken(), page_size=1)

        assert exc_info.value.stage == "discovery"
        assert "cannot list CRDs" in exc_info.value.message

    def test_cancelled_before_start(self, populated_control_plane):
        cancel = CancelToken()
        cancel.cancel()

        with pytest.raises(ExportCancelled):
            fetch_all_crds(populated_control_plane, cancel)

        assert populated_control_plane.list_calls == []
