"""
Inverted index and query engine over path-like documents.

- analyzers: path tokenization into terms
- stats: IDF and BM25 term weights
- indexer: two-pass index construction (sequential or sharded)
- bm25_engine: coverage and BM25-ranked queries
"""

from archive_search.search.bm25_engine import QueryEngine, filter_coverage
from archive_search.search.indexer import DuplicateDocumentError, build_index
from archive_search.search.models import CoverageMatch, Document, Index, RankedDocument


__all__ = [
    "CoverageMatch",
    "Document",
    "DuplicateDocumentError",
    "Index",
    "QueryEngine",
    "RankedDocument",
    "build_index",
    "filter_coverage",
]
