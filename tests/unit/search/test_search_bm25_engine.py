"""Unit tests for coverage and BM25-ranked queries."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import math

import pytest

from archive_search.search.analyzers import PathAnalyzer
from archive_search.search.bm25_engine import QueryEngine, filter_coverage, unique_terms
from archive_search.search.indexer import build_index
from archive_search.search.models import CoverageMatch, Document, Index


@pytest.fixture
def two_doc_engine(two_doc_corpus) -> QueryEngine:
    return QueryEngine(build_index(two_doc_corpus))


@pytest.fixture
def archive_engine(archive_corpus) -> QueryEngine:
    return QueryEngine(build_index(archive_corpus))


def test_coverage_single_term(two_doc_engine) -> None:
    assert two_doc_engine.coverage(["b"]) == {"doc1": CoverageMatch(matched=1, total=1)}


def test_coverage_counts_distinct_terms_not_occurrences() -> None:
    engine = QueryEngine(build_index([Document.from_paths("d", ["a/a/a/b"])]))

    result = engine.coverage(["a", "b", "a", "zzz"])

    assert result == {"d": CoverageMatch(matched=2, total=3)}
    assert result["d"].ratio == pytest.approx(2 / 3)
    assert str(result["d"]) == "2/3"


def test_coverage_counts_are_bounded(archive_engine) -> None:
    query = ["README.md", "index.md", "src", "site", "missing"]
    result = archive_engine.coverage(query)

    assert set(result) == {"site.zip", "src.zip", "docs.zip"}
    for match in result.values():
        assert 1 <= match.matched <= match.total == len(query)
    assert result["docs.zip"].matched == 2
    assert result["src.zip"].matched == 2


def test_coverage_unknown_terms_yield_empty_result(two_doc_engine) -> None:
    assert two_doc_engine.coverage(["nope", "never"]) == {}
    assert two_doc_engine.coverage([]) == {}


def test_filter_coverage_keeps_at_least_k(archive_engine) -> None:
    result = archive_engine.coverage(["README.md", "index.md", "site"])

    assert set(filter_coverage(result, 2)) == {"docs.zip"}
    assert set(filter_coverage(result, 1)) == {"site.zip", "src.zip", "docs.zip"}


def test_rank_document_matching_all_terms_wins(two_doc_engine) -> None:
    ranked = two_doc_engine.rank(["a", "b"])

    assert [entry.doc_id for entry in ranked] == ["doc1", "doc2"]
    assert ranked[0].score == pytest.approx(math.log(1.2) + math.log(2.0))
    assert ranked[1].score == pytest.approx(math.log(1.2))


def test_rank_scores_partial_matches_instead_of_failing(two_doc_engine) -> None:
    # doc2 lacks "b"; it must still be scored using frequency zero for that term.
    ranked = two_doc_engine.rank(["b", "a"])

    assert {entry.doc_id for entry in ranked} == {"doc1", "doc2"}
    assert two_doc_engine.score_document("doc2", ["b"]) == 0.0


def test_rank_excludes_documents_without_matches(archive_engine) -> None:
    ranked = archive_engine.rank(["Cargo.toml"])

    assert [entry.doc_id for entry in ranked] == ["src.zip"]


def test_rank_is_sorted_and_non_negative(archive_engine) -> None:
    ranked = archive_engine.rank(["README.md", "index.md", "site", "css"])

    scores = [entry.score for entry in ranked]
    assert scores == sorted(scores, reverse=True)
    assert all(score >= 0 for score in scores)


def test_rank_unknown_terms_do_not_affect_scores(two_doc_engine) -> None:
    with_unknown = two_doc_engine.rank(["a", "b", "unknown"])
    without = two_doc_engine.rank(["a", "b"])

    assert with_unknown == without


def test_rank_no_candidates_is_empty(two_doc_engine) -> None:
    assert two_doc_engine.rank(["unknown"]) == []
    assert two_doc_engine.rank([]) == []


def test_rank_repeated_terms_are_not_double_counted(two_doc_engine) -> None:
    assert two_doc_engine.rank(["b", "b"]) == two_doc_engine.rank(["b"])


def test_rank_limit(archive_engine) -> None:
    full = archive_engine.rank(["README.md", "index.md", "site"])

    top = archive_engine.rank(["README.md", "index.md", "site"], limit=1)

    assert len(full) == 3
    assert top == full[:1]
    assert archive_engine.rank(["README.md"], limit=0) == []


def test_rank_prefers_shorter_documents_for_same_frequency() -> None:
    corpus = [
        Document.from_paths("short", ["x"]),
        Document.from_paths("long", ["x/y/z/w/v/u"]),
    ]
    ranked = QueryEngine(build_index(corpus)).rank(["x"])

    assert [entry.doc_id for entry in ranked] == ["short", "long"]


def test_rank_over_only_empty_segments_corpus() -> None:
    analyzer = PathAnalyzer(keep_empty=True)
    index = build_index([Document.from_paths("d", [""])], analyzer=analyzer)

    ranked = QueryEngine(index, analyzer=analyzer).rank([""])

    assert [entry.doc_id for entry in ranked] == ["d"]
    assert ranked[0].score > 0


def test_queries_against_empty_index() -> None:
    engine = QueryEngine(Index.empty())

    assert engine.rank(["a"]) == []
    assert engine.coverage(["a"]) == {}


def test_queries_are_idempotent(archive_engine) -> None:
    query = ["README.md", "index.md", "src"]

    assert archive_engine.rank(query) == archive_engine.rank(query)
    assert archive_engine.coverage(query) == archive_engine.coverage(query)


def test_concurrent_queries_share_one_index(archive_engine) -> None:
    query = ["README.md", "index.md", "site"]
    expected = archive_engine.rank(query)

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: archive_engine.rank(query), range(16)))

    assert all(result == expected for result in results)


def test_tokenize_query_splits_paths_and_dedupes(archive_engine) -> None:
    assert archive_engine.tokenize_query("src/main.rs", "src", "README.md") == ("src", "main.rs", "README.md")


def test_custom_tuning_constants_change_scores(archive_corpus) -> None:
    index = build_index(archive_corpus)
    default = QueryEngine(index).rank(["index.md"])
    no_length_norm = QueryEngine(index, b=0.0).rank(["index.md"])

    assert [entry.score for entry in default] != [entry.score for entry in no_length_norm]


@pytest.mark.parametrize(("k1", "b"), [(0.0, 0.75), (1.5, -0.1), (1.5, 1.5)])
def test_invalid_tuning_constants_are_rejected(k1, b) -> None:
    with pytest.raises(ValueError):
        QueryEngine(Index.empty(), k1=k1, b=b)


def test_unique_terms_preserves_order() -> None:
    assert unique_terms(["b", "a", "b", "c", "a"]) == ("b", "a", "c")
