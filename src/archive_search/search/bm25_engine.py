"""Query engine answering coverage and BM25-ranked queries over an :class:`Index`."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
import heapq
import logging

from archive_search.observability.metrics import SEARCH_COUNT, SEARCH_LATENCY, track_latency
from archive_search.observability.tracing import create_span
from archive_search.search.analyzers import PathAnalyzer
from archive_search.search.models import CoverageMatch, Index, RankedDocument
from archive_search.search.stats import DEFAULT_B, DEFAULT_K1, bm25


logger = logging.getLogger(__name__)


def unique_terms(terms: Iterable[str]) -> tuple[str, ...]:
    """Drop repeated query terms, keeping first-occurrence order."""
    return tuple(dict.fromkeys(terms))


def filter_coverage(matches: Mapping[str, CoverageMatch], min_matches: int) -> dict[str, CoverageMatch]:
    """Keep documents that matched at least ``min_matches`` distinct query terms."""
    return {doc_id: match for doc_id, match in matches.items() if match.matched >= min_matches}


class QueryEngine:
    """Read-only query front end over a built index.

    The engine never mutates the index, so one index can back any number of
    engines or concurrent calls.
    """

    def __init__(
        self,
        index: Index,
        *,
        k1: float = DEFAULT_K1,
        b: float = DEFAULT_B,
        analyzer: PathAnalyzer | None = None,
    ) -> None:
        if k1 <= 0:
            raise ValueError(f"k1 must be positive, got {k1}")
        if not 0.0 <= b <= 1.0:
            raise ValueError(f"b must be within [0, 1], got {b}")
        self.index = index
        self.k1 = k1
        self.b = b
        self.analyzer = analyzer or PathAnalyzer()

    def tokenize_query(self, *texts: str) -> tuple[str, ...]:
        """Split path-like query strings with the indexing analyzer.

        ``tokenize_query("src/main.rs", "README")`` yields
        ``("src", "main.rs", "README")``.
        """
        return unique_terms(term for text in texts for term in self.analyzer.terms(text))

    def coverage(self, terms: Iterable[str]) -> dict[str, CoverageMatch]:
        """Count, per document, how many distinct query terms it contains.

        Unknown terms simply contribute no hits. Documents matching nothing are
        absent from the result; no ordering is implied.
        """
        query = unique_terms(terms)
        attributes = {"query.terms": len(query)}
        with create_span("search.coverage", attributes=attributes), track_latency(SEARCH_LATENCY, mode="coverage"):
            counts: dict[str, int] = defaultdict(int)
            for term in query:
                for doc_id in self.index.postings(term):
                    counts[doc_id] += 1
            result = {doc_id: CoverageMatch(matched=count, total=len(query)) for doc_id, count in counts.items()}

        SEARCH_COUNT.labels(mode="coverage", status="hit" if result else "empty").inc()
        logger.debug("Coverage query %s matched %d documents", query, len(result))
        return result

    def score_document(self, doc_id: str, terms: Iterable[str]) -> float:
        """BM25 score of one document; terms it lacks contribute zero."""
        doc_length = self.index.document_length(doc_id)
        avg_length = self.index.average_length
        score = 0.0
        for term in unique_terms(terms):
            idf = self.index.idf(term)
            if idf <= 0:
                continue
            weight = bm25(self.index.frequency(term, doc_id), doc_length, avg_length, k1=self.k1, b=self.b)
            score += idf * weight
        return score

    def rank(self, terms: Iterable[str], *, limit: int | None = None) -> list[RankedDocument]:
        """Return BM25-ranked documents, best first.

        Candidates are the documents containing at least one query term. A
        candidate missing some of the terms is still scored: those terms
        contribute nothing. Equal scores keep no particular order.
        """
        query = unique_terms(terms)
        if limit is not None and limit <= 0:
            return []

        attributes = {"query.terms": len(query)}
        with create_span("search.rank", attributes=attributes) as span, track_latency(SEARCH_LATENCY, mode="rank"):
            candidates: dict[str, None] = {}
            for term in query:
                candidates.update(dict.fromkeys(self.index.postings(term)))

            doc_scores = {doc_id: self.score_document(doc_id, query) for doc_id in candidates}
            if limit is not None and limit < len(doc_scores):
                top_items = heapq.nlargest(limit, doc_scores.items(), key=lambda item: item[1])
                ranked = [RankedDocument(doc_id=doc_id, score=score) for doc_id, score in top_items]
            else:
                ranked = sorted(
                    (RankedDocument(doc_id=doc_id, score=score) for doc_id, score in doc_scores.items()),
                    key=lambda entry: entry.score,
                    reverse=True,
                )
            span.set_attribute("search.candidates", len(candidates))

        SEARCH_COUNT.labels(mode="rank", status="hit" if ranked else "empty").inc()
        logger.debug("Ranked query %s over %d candidates", query, len(candidates))
        return ranked
