"""Line-delimited JSON corpus records.

Each line describes one archive::

    {"name": "assets.zip", "file_names": ["img/logo.png", "css/site.css"]}

The archive name becomes the document id and the member names become the
document's paths.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import logging
from pathlib import Path
from typing import BinaryIO

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from archive_search.search.models import Document


logger = logging.getLogger(__name__)


class CorpusFormatError(ValueError):
    """Raised when a corpus line is not a valid archive record."""

    def __init__(self, line_number: int, reason: str) -> None:
        self.line_number = line_number
        super().__init__(f"Invalid corpus record on line {line_number}: {reason}")


class ArchiveRecord(BaseModel):
    """Value object describing one archive and the members it contains."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Archive file name, used as the document id")
    file_names: list[str] = Field(default_factory=list, description="Member names in archive order")

    def to_document(self) -> Document:
        return Document.from_paths(self.name, self.file_names)


def iter_corpus(lines: Iterable[bytes | str]) -> Iterator[ArchiveRecord]:
    """Parse records from JSONL lines, skipping blank ones."""

    for line_number, raw in enumerate(lines, start=1):
        if not raw.strip():
            continue
        try:
            payload = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise CorpusFormatError(line_number, str(exc)) from exc
        try:
            yield ArchiveRecord.model_validate(payload)
        except ValidationError as exc:
            raise CorpusFormatError(line_number, exc.errors()[0]["msg"]) from exc


def read_corpus(path: Path) -> list[ArchiveRecord]:
    """Load every record from a JSONL corpus file."""

    with Path(path).open("rb") as handle:
        records = list(iter_corpus(handle))
    logger.info("Loaded %d corpus records from %s", len(records), path)
    return records


def write_corpus(records: Iterable[ArchiveRecord], destination: Path | BinaryIO) -> int:
    """Write one JSON object per line; returns the number of records written."""

    if isinstance(destination, (str, Path)):
        with Path(destination).open("wb") as handle:
            return write_corpus(records, handle)

    count = 0
    for record in records:
        destination.write(orjson.dumps(record.model_dump()))
        destination.write(b"\n")
        count += 1
    return count


def records_to_documents(records: Iterable[ArchiveRecord]) -> list[Document]:
    return [record.to_document() for record in records]
