"""Build the in-memory inverted index over a corpus of documents.

Construction is a two-pass computation: postings and document lengths are
accumulated first, then the corpus-wide statistics (IDF, average length) are
derived once from the finished totals. With ``workers > 1`` the first pass is
sharded by document across a thread pool and the partial results are merged
before the statistics pass, so the outcome is identical to a sequential build.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from types import MappingProxyType

from archive_search.observability.metrics import INDEX_BUILD_LATENCY, INDEX_DOC_COUNT, track_latency
from archive_search.observability.tracing import create_span
from archive_search.search.analyzers import PathAnalyzer
from archive_search.search.models import Document, Index
from archive_search.search.stats import average_length, calculate_idf


logger = logging.getLogger(__name__)


class DuplicateDocumentError(ValueError):
    """Raised when two corpus documents share the same id."""

    def __init__(self, doc_id: str, first_position: int, second_position: int) -> None:
        self.doc_id = doc_id
        self.first_position = first_position
        self.second_position = second_position
        super().__init__(
            f"Duplicate document id {doc_id!r} at corpus positions {first_position} and {second_position}"
        )


@dataclass
class PartialIndex:
    """Mutable postings and lengths for a subset of the corpus.

    Only the builder touches these; :func:`finalize_index` turns a fully
    merged partial into an immutable :class:`Index`.
    """

    postings: defaultdict[str, Counter[str]] = field(default_factory=lambda: defaultdict(Counter))
    lengths: dict[str, int] = field(default_factory=dict)

    def add_document(self, document: Document, analyzer: PathAnalyzer) -> None:
        length = self.lengths.get(document.doc_id, 0)
        for path in document.paths:
            terms = analyzer.terms(path)
            length += len(terms)
            for term in terms:
                self.postings[term][document.doc_id] += 1
        self.lengths[document.doc_id] = length

    def merge(self, other: PartialIndex) -> PartialIndex:
        """Fold ``other`` into this partial by summing frequencies per (term, doc_id)."""
        for term, frequencies in other.postings.items():
            self.postings[term].update(frequencies)
        for doc_id, length in other.lengths.items():
            self.lengths[doc_id] = self.lengths.get(doc_id, 0) + length
        return self


def validate_unique_ids(corpus: Iterable[Document]) -> None:
    """Raise :class:`DuplicateDocumentError` on the first repeated id."""

    seen: dict[str, int] = {}
    for position, document in enumerate(corpus):
        first = seen.setdefault(document.doc_id, position)
        if first != position:
            raise DuplicateDocumentError(document.doc_id, first, position)


def index_documents(documents: Iterable[Document], analyzer: PathAnalyzer) -> PartialIndex:
    partial = PartialIndex()
    for document in documents:
        partial.add_document(document, analyzer)
    return partial


def finalize_index(partial: PartialIndex) -> Index:
    """Run the statistics pass over a complete set of postings and lengths."""

    total_docs = len(partial.lengths)
    postings = {term: MappingProxyType(dict(frequencies)) for term, frequencies in partial.postings.items()}
    idf = {term: calculate_idf(len(frequencies), total_docs) for term, frequencies in postings.items()}
    return Index(
        postings_by_term=MappingProxyType(postings),
        document_lengths=MappingProxyType(dict(partial.lengths)),
        idf_by_term=MappingProxyType(idf),
        average_length=average_length(partial.lengths),
        document_count=total_docs,
    )


def shard(documents: Sequence[Document], shard_count: int) -> list[Sequence[Document]]:
    """Split ``documents`` into at most ``shard_count`` contiguous, non-empty slices."""

    if not documents:
        return []
    shard_count = max(1, min(shard_count, len(documents)))
    size, remainder = divmod(len(documents), shard_count)
    shards: list[Sequence[Document]] = []
    start = 0
    for idx in range(shard_count):
        end = start + size + (1 if idx < remainder else 0)
        shards.append(documents[start:end])
        start = end
    return shards


def build_index(
    corpus: Iterable[Document],
    *,
    analyzer: PathAnalyzer | None = None,
    workers: int = 1,
) -> Index:
    """Build an immutable :class:`Index` from ``corpus``.

    Args:
        corpus: Documents in corpus order. Ids must be unique.
        analyzer: Tokenizer for document paths; the verbatim ``/`` splitter by default.
        workers: Number of threads used for the postings pass. ``1`` builds sequentially.

    Raises:
        DuplicateDocumentError: When two documents share an id.
    """

    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    documents = list(corpus)
    analyzer = analyzer or PathAnalyzer()
    strategy = "sharded" if workers > 1 and len(documents) > 1 else "sequential"

    attributes = {"index.documents": len(documents), "index.workers": workers, "index.strategy": strategy}
    with (
        create_span("index.build", attributes=attributes) as span,
        track_latency(INDEX_BUILD_LATENCY, strategy=strategy),
    ):
        validate_unique_ids(documents)

        if strategy == "sharded":
            shards = shard(documents, workers)
            with ThreadPoolExecutor(max_workers=len(shards), thread_name_prefix="index-shard") as pool:
                partials = list(pool.map(lambda part: index_documents(part, analyzer), shards))
            merged = PartialIndex()
            for partial in partials:
                merged.merge(partial)
        else:
            merged = index_documents(documents, analyzer)

        index = finalize_index(merged)
        span.set_attribute("index.terms", index.vocabulary_size)

    INDEX_DOC_COUNT.labels(strategy=strategy).set(index.document_count)
    if index.document_count and index.average_length == 0:
        logger.warning("Every document in the corpus is empty; BM25 length normalization is disabled")
    logger.info(
        "Built index: %d documents, %d terms, avg length %.2f (%s)",
        index.document_count,
        index.vocabulary_size,
        index.average_length,
        strategy,
    )
    return index


def describe_index(index: Index) -> Mapping[str, float | int]:
    """Summary numbers suitable for logging or CLI output."""

    return {
        "documents": index.document_count,
        "terms": index.vocabulary_size,
        "postings": sum(len(frequencies) for frequencies in index.postings_by_term.values()),
        "average_length": index.average_length,
    }
