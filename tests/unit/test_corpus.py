"""Unit tests for JSONL corpus records."""

from __future__ import annotations

import io

import pytest

from archive_search.corpus import (
    ArchiveRecord,
    CorpusFormatError,
    iter_corpus,
    read_corpus,
    records_to_documents,
    write_corpus,
)
from archive_search.search.models import Document


def test_iter_corpus_parses_records_and_skips_blank_lines() -> None:
    lines = [
        b'{"name": "a.zip", "file_names": ["x/y", "z"]}\n',
        b"\n",
        '{"name": "b.zip", "file_names": []}',
    ]

    records = list(iter_corpus(lines))

    assert records == [
        ArchiveRecord(name="a.zip", file_names=["x/y", "z"]),
        ArchiveRecord(name="b.zip", file_names=[]),
    ]


def test_missing_file_names_defaults_to_empty() -> None:
    (record,) = iter_corpus(['{"name": "solo.zip"}'])

    assert record.file_names == []


@pytest.mark.parametrize(
    ("line", "reason"),
    [
        (b"{not json", "Invalid corpus record on line 2"),
        (b'{"file_names": ["a"]}', "line 2"),
        (b'{"name": "", "file_names": []}', "line 2"),
        (b'{"name": "a.zip", "file_names": "oops"}', "line 2"),
    ],
)
def test_invalid_lines_report_line_number(line, reason) -> None:
    lines = [b'{"name": "ok.zip", "file_names": []}', line]

    with pytest.raises(CorpusFormatError, match=reason) as excinfo:
        list(iter_corpus(lines))

    assert excinfo.value.line_number == 2


def test_write_then_read_corpus_file(tmp_path) -> None:
    records = [
        ArchiveRecord(name="one.zip", file_names=["a/b.txt"]),
        ArchiveRecord(name="two.zip", file_names=["ä/ü.txt", "c/"]),
    ]
    path = tmp_path / "corpus.jsonl"

    written = write_corpus(records, path)

    assert written == 2
    assert path.read_bytes().count(b"\n") == 2
    assert read_corpus(path) == records


def test_write_corpus_to_stream() -> None:
    buffer = io.BytesIO()

    write_corpus([ArchiveRecord(name="a.zip", file_names=["x"])], buffer)

    assert buffer.getvalue() == b'{"name":"a.zip","file_names":["x"]}\n'


def test_records_to_documents() -> None:
    records = [ArchiveRecord(name="a.zip", file_names=["x/y"])]

    assert records_to_documents(records) == [Document(doc_id="a.zip", paths=("x/y",))]


def test_read_corpus_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        read_corpus(tmp_path / "missing.jsonl")
