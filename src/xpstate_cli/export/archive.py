"""Packaging of the staging directory into a gzipped tarball."""

from __future__ import annotations

import os
import tarfile
from pathlib import Path

from ..shared.logging import get_logger
from .cancel import CancelToken
from .errors import STAGE_ARCHIVE, ArchiveError, ExportError

# Owner-only read/write
ARCHIVE_MODE = 0o600

logger = get_logger(__name__)


def _normalize(info: tarfile.TarInfo) -> tarfile.TarInfo:
    # Owner of the staging files is meaningless on the importing side
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    return info


def archive_directory(source: str | Path, output: str | Path, cancel: CancelToken) -> int:
    """Write every file below source into a .tar.gz at output.

    Paths inside the archive are relative to source. The output file is
    created with mode 0600 before any data is written, and it is removed
    again if archiving fails.

    Args:
        source: Directory to archive
        output: Archive path
        cancel: Checked before each archive member

    Returns:
        Number of regular files archived

    Raises:
        ArchiveError: If the archive cannot be created or written.
    """
    source = Path(source)
    output = Path(output)
    files = 0

    def add_filter(info: tarfile.TarInfo) -> tarfile.TarInfo:
        nonlocal files
        cancel.raise_if_cancelled(STAGE_ARCHIVE)
        if info.isfile():
            files += 1
        return _normalize(info)

    created = False
    try:
        fd = os.open(output, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, ARCHIVE_MODE)
        created = True
        with os.fdopen(fd, "wb") as raw:
            # O_CREAT does not touch the mode of an existing file
            os.fchmod(raw.fileno(), ARCHIVE_MODE)
            with tarfile.open(fileobj=raw, mode="w:gz") as tar:
                for entry in sorted(source.iterdir()):
                    tar.add(entry, arcname=entry.name, recursive=True, filter=add_filter)
    except ExportError:
        if created:
            _remove_quietly(output)
        raise
    except (OSError, tarfile.TarError) as err:
        if created:
            _remove_quietly(output)
        raise ArchiveError(
            message=f"cannot archive {source} to {output}: {err}",
            data={"path": str(output)},
        ) from err

    logger.info("archive written", path=str(output), files=files)
    return files


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as err:
        logger.warning("cannot remove partial archive", path=str(path), error=str(err))
