"""Search data models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


_EMPTY_POSTINGS: Mapping[str, int] = MappingProxyType({})


@dataclass(frozen=True)
class Document:
    """A corpus entry: a unique id plus the path-like strings it owns."""

    doc_id: str
    paths: tuple[str, ...] = ()

    @classmethod
    def from_paths(cls, doc_id: str, paths: Iterable[str]) -> Document:
        return cls(doc_id=doc_id, paths=tuple(paths))


@dataclass(frozen=True)
class Index:
    """Immutable inverted index plus the corpus statistics BM25 needs.

    All mappings are read-only views, so one instance can be shared by any
    number of concurrent readers. Lookups never raise for unknown terms or
    documents: they fall back to an empty mapping, ``0`` or ``0.0``.
    """

    postings_by_term: Mapping[str, Mapping[str, int]]
    document_lengths: Mapping[str, int]
    idf_by_term: Mapping[str, float]
    average_length: float
    document_count: int = field(default=0)

    @classmethod
    def empty(cls) -> Index:
        return cls(MappingProxyType({}), MappingProxyType({}), MappingProxyType({}), 0.0, 0)

    def __contains__(self, term: object) -> bool:
        return term in self.postings_by_term

    @property
    def vocabulary_size(self) -> int:
        return len(self.postings_by_term)

    def postings(self, term: str) -> Mapping[str, int]:
        return self.postings_by_term.get(term, _EMPTY_POSTINGS)

    def frequency(self, term: str, doc_id: str) -> int:
        """Return how often ``term`` occurs in ``doc_id``; 0 when it does not."""
        return self.postings(term).get(doc_id, 0)

    def document_frequency(self, term: str) -> int:
        return len(self.postings(term))

    def idf(self, term: str) -> float:
        return self.idf_by_term.get(term, 0.0)

    def document_length(self, doc_id: str) -> int:
        return self.document_lengths.get(doc_id, 0)


@dataclass(frozen=True)
class RankedDocument:
    """Represents a scored document produced by the BM25 engine."""

    doc_id: str
    score: float


@dataclass(frozen=True)
class CoverageMatch:
    """How many of a query's distinct terms a document contains."""

    matched: int
    total: int

    @property
    def ratio(self) -> float:
        if self.total == 0:
            return 0.0
        return self.matched / self.total

    def __str__(self) -> str:
        return f"{self.matched}/{self.total}"
