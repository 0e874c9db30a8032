"""Read-only inspection of zip archives."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO
import zipfile

from archive_search.corpus import ArchiveRecord


logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


class ArchiveReadError(RuntimeError):
    """Raised when an archive cannot be opened or its directory read."""


def list_archive_members(source: Path | BinaryIO) -> list[str]:
    """Return the member names of a zip archive in archive order.

    ``source`` may be a filesystem path or a seekable binary stream such as
    ``io.BytesIO``.
    """

    try:
        with zipfile.ZipFile(source) as archive:
            return [info.filename for info in archive.infolist()]
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveReadError(f"Cannot read archive {source}: {exc}") from exc


def scan_archives(directory: Path) -> list[ArchiveRecord]:
    """Describe every ``*.zip`` file directly inside ``directory``.

    Entries are visited in name order; directories and other files are
    skipped.
    """

    root = Path(directory)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    records: list[ArchiveRecord] = []
    for path in sorted(root.iterdir()):
        if not (path.is_file() and path.suffix.lower() == ARCHIVE_SUFFIX):
            logger.info("Skipping %s", path)
            continue
        members = list_archive_members(path)
        logger.debug("Listed %d members in %s", len(members), path.name)
        records.append(ArchiveRecord(name=path.name, file_names=members))

    logger.info("Scanned %d archives in %s", len(records), root)
    return records
