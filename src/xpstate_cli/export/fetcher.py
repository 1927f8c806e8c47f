"""Paginated listing of type definitions and resource instances."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from ..shared.logging import get_logger
from .cancel import CancelToken
from .errors import STAGE_DISCOVERY, STAGE_FETCH, DiscoveryError, ExportError, FetchError
from .sources import CRDLister, ResourceLister
from .types import CustomResourceDefinition, ListPage, ResourceCoordinate, Unstructured

# Items requested per list call
DEFAULT_PAGE_SIZE = 500

logger = get_logger(__name__)


def paginate(
    list_page: Callable[[int, str], ListPage],
    *,
    page_size: int,
    cancel: CancelToken,
    stage: str,
    error_cls: type[ExportError],
    what: str,
    data: dict | None = None,
) -> Iterator[Unstructured]:
    """Yield items from consecutive list calls until the continue token is empty.

    Items come out in server order. A failed page aborts the iteration; there
    are no retries here.

    Args:
        list_page: Called with (limit, continue_token), returns one ListPage
        page_size: Limit passed to every call
        cancel: Checked before every page
        stage: Stage name used on cancellation
        error_cls: Error class a failed call is wrapped in
        what: Description used in error messages
        data: Context attached to raised errors
    """
    if page_size <= 0:
        raise ValueError(f"page size must be positive, got {page_size}")

    continue_token = ""
    pages = 0
    while True:
        cancel.raise_if_cancelled(stage)
        try:
            page = list_page(page_size, continue_token)
        except ExportError:
            raise
        except Exception as err:
            raise error_cls(
                message=f"cannot list {what}: {err}",
                data={**(data or {}), "page": pages, "continue": continue_token},
            ) from err
        pages += 1
        logger.debug("page listed", what=what, page=pages, items=len(page.items))

        yield from page.items

        continue_token = page.continue_token or ""
        if not continue_token:
            break


def fetch_all_crds(
    lister: CRDLister,
    cancel: CancelToken,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[CustomResourceDefinition]:
    """List every CustomResourceDefinition in the cluster.

    Raises:
        DiscoveryError: If any page cannot be listed.
    """
    items = paginate(
        lambda limit, token: lister.list_crds(limit=limit, continue_token=token, cancel=cancel),
        page_size=page_size,
        cancel=cancel,
        stage=STAGE_DISCOVERY,
        error_cls=DiscoveryError,
        what="CRDs",
    )
    return [CustomResourceDefinition.from_dict(obj) for obj in items]


class UnstructuredFetcher:
    """Streams all instances of a resource coordinate."""

    def __init__(self, lister: ResourceLister, page_size: int = DEFAULT_PAGE_SIZE):
        self.lister = lister
        self.page_size = page_size

    def fetch(self, coordinate: ResourceCoordinate, cancel: CancelToken) -> Iterator[Unstructured]:
        """Lazily yield every instance of the coordinate.

        The iterator cannot be restarted; call fetch again for a new listing.

        Raises:
            FetchError: If any page cannot be listed.
        """
        return paginate(
            lambda limit, token: self.lister.list_resources(
                coordinate, limit=limit, continue_token=token, cancel=cancel
            ),
            page_size=self.page_size,
            cancel=cancel,
            stage=STAGE_FETCH,
            error_cls=FetchError,
            what=coordinate.group_resource,
            data={"resource": coordinate.group_resource, "version": coordinate.version},
        )
