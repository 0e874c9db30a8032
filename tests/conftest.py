"""Shared test fixtures and configuration."""

from __future__ import annotations

import logging
import os

import pytest

from archive_search.observability.context import trace_context
from archive_search.search.models import Document


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep ARCHIVE_SEARCH_* variables and stray .env files out of every test."""
    for key in list(os.environ):
        if key.upper().startswith("ARCHIVE_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    token = trace_context.set(None)
    yield
    trace_context.reset(token)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def two_doc_corpus() -> list[Document]:
    return [
        Document.from_paths("doc1", ["a/b"]),
        Document.from_paths("doc2", ["a/c"]),
    ]


@pytest.fixture
def archive_corpus() -> list[Document]:
    return [
        Document.from_paths("site.zip", ["site/index.html", "site/css/site.css", "site/img/logo.png"]),
        Document.from_paths("src.zip", ["src/main.rs", "src/lib.rs", "Cargo.toml", "README.md"]),
        Document.from_paths("docs.zip", ["docs/", "docs/index.md", "docs/api/index.md", "README.md"]),
        Document.from_paths("empty.zip", []),
    ]
