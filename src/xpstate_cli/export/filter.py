"""Selection of the CustomResourceDefinitions whose instances are exported."""

from .types import CustomResourceDefinition

# API group of the Crossplane package manager
PACKAGE_API_GROUP = "pkg.crossplane.io"

# Types named under this domain belong to Crossplane itself
RESERVED_DOMAIN_SUFFIX = ".crossplane.io"


def should_export(crd: CustomResourceDefinition) -> bool:
    """Decide whether instances of a type are in scope.

    Exported are:
    - types owned by a Crossplane package (owner reference into pkg.crossplane.io)
    - Crossplane core types (name ends with .crossplane.io)
    """
    for ref in crd.owner_references:
        if ref.group == PACKAGE_API_GROUP:
            return True

    return crd.name.endswith(RESERVED_DOMAIN_SUFFIX)
