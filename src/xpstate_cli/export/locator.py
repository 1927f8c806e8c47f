"""Resolution of a CustomResourceDefinition to its stored resource coordinate."""

from .errors import ResolutionError
from .sources import RESTMapper
from .types import CustomResourceDefinition, ResourceCoordinate


def resolve_coordinate(mapper: RESTMapper, crd: CustomResourceDefinition) -> ResourceCoordinate:
    """Resolve the storage version of a CRD through the REST mapper.

    A CRD without a storage version is passed on with an empty version so the
    mapper fails on it instead of an arbitrary version being picked.

    Raises:
        ResolutionError: If the mapping cannot be resolved.
    """
    storage = crd.storage_version
    version = storage.name if storage else ""

    try:
        return mapper.rest_mapping(crd.group, crd.kind, version)
    except Exception as err:
        reason = str(err) if version else f"no storage version ({err})"
        raise ResolutionError(
            message=f'cannot get REST mapping for "{crd.name}": {reason}',
            data={"type": crd.name, "group": crd.group, "kind": crd.kind, "version": version},
        ) from err
