"""Writes exported types and instances into the staging directory.

Layout below the staging root, one directory per group-resource:

    <resource>.<group>/metadata.yaml
    <resource>.<group>/cluster/<name>.yaml
    <resource>.<group>/namespaces/<namespace>/<name>.yaml
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from .errors import PersistError
from .types import ResourceCoordinate, TypeMeta, Unstructured

TYPE_METADATA_FILE = "metadata.yaml"
CLUSTER_DIR = "cluster"
NAMESPACES_DIR = "namespaces"

# Mode of every file written into the staging root
FILE_MODE = 0o600


def _check_segment(value: str, what: str, coordinate: ResourceCoordinate) -> str:
    if not value or value in (".", "..") or "/" in value or "\\" in value:
        raise PersistError(
            message=f"invalid {what} {value!r} for {coordinate.group_resource}",
            data={"resource": coordinate.group_resource, what: value},
        )
    return value


class FileSystemPersister:
    """Persists instances of one type below a staging root."""

    def __init__(self, root: str | Path, type_meta: TypeMeta):
        self.root = Path(root)
        self.type_meta = type_meta

    def type_dir(self, coordinate: ResourceCoordinate) -> Path:
        return self.root / coordinate.group_resource

    def instance_path(self, coordinate: ResourceCoordinate, obj: Unstructured) -> Path:
        """Path an instance is stored at, derived from coordinate, namespace and name."""
        metadata = obj.get("metadata") or {}
        name = _check_segment(metadata.get("name", ""), "name", coordinate)
        namespace = metadata.get("namespace")

        base = self.type_dir(coordinate)
        if namespace:
            _check_segment(namespace, "namespace", coordinate)
            return base / NAMESPACES_DIR / namespace / f"{name}.yaml"
        return base / CLUSTER_DIR / f"{name}.yaml"

    def record_type(self, coordinate: ResourceCoordinate) -> Path:
        """Write the type descriptor. Rewriting it with the same input is harmless.

        Raises:
            PersistError: If the descriptor cannot be written.
        """
        path = self.type_dir(coordinate) / TYPE_METADATA_FILE
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._write(path, self.type_meta.to_dict(), exclusive=False)
        except (OSError, yaml.YAMLError) as err:
            raise PersistError(
                message=f"cannot write type metadata for {coordinate.group_resource}: {err}",
                data={"resource": coordinate.group_resource, "path": str(path)},
            ) from err
        return path

    def record_instance(self, coordinate: ResourceCoordinate, obj: Unstructured) -> Path:
        """Write one instance, creating intermediate directories.

        Raises:
            PersistError: If the file cannot be written or already exists.
        """
        path = self.instance_path(coordinate, obj)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._write(path, obj, exclusive=True)
        except FileExistsError as err:
            raise PersistError(
                message=f"duplicate instance {path.relative_to(self.root)}",
                data={"resource": coordinate.group_resource, "path": str(path)},
            ) from err
        except (OSError, yaml.YAMLError) as err:
            raise PersistError(
                message=f"cannot write {path.relative_to(self.root)}: {err}",
                data={"resource": coordinate.group_resource, "path": str(path)},
            ) from err
        return path

    def _write(self, path: Path, doc: Unstructured, exclusive: bool) -> None:
        data = yaml.safe_dump(doc, default_flow_style=False, sort_keys=False)
        mode = "x" if exclusive else "w"
        with open(path, mode, opener=_private_opener) as f:
            f.write(data)


def _private_opener(path: str, flags: int) -> int:
    return os.open(path, flags, FILE_MODE)
