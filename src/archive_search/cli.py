"""Command-line entry point: scan archives into a corpus, then query it.

Examples:
  archive-search scan ./downloads --output corpus.jsonl
  archive-search rank corpus.jsonl src main.rs --limit 5
  archive-search coverage corpus.jsonl docs/index.md README --min-matches 2
"""

# ruff: noqa: T201  # CLI intentionally prints results

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
import textwrap

from pydantic import ValidationError

from archive_search.archives import ArchiveReadError, scan_archives
from archive_search.config import Settings
from archive_search.corpus import CorpusFormatError, read_corpus, records_to_documents, write_corpus
from archive_search.observability.context import generate_span_id, generate_trace_id, set_trace_context
from archive_search.observability.logging import configure_logging
from archive_search.observability.metrics import write_metrics
from archive_search.observability.tracing import init_tracing
from archive_search.search.bm25_engine import QueryEngine, filter_coverage
from archive_search.search.indexer import DuplicateDocumentError, build_index, describe_index


logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archive-search",
        description="Index zip archive listings and query them by path segment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Settings may also come from ARCHIVE_SEARCH_* environment variables
            (for example ARCHIVE_SEARCH_LOWERCASE=true); flags take precedence.
            """
        ).strip(),
    )
    parser.add_argument("--log-level", help="Root log level (default: info)")
    log_format = parser.add_mutually_exclusive_group()
    log_format.add_argument(
        "--json-logs",
        dest="json_logs",
        action="store_true",
        default=None,
        help="Emit structured JSON logs (default)",
    )
    log_format.add_argument(
        "--text-logs",
        dest="json_logs",
        action="store_false",
        default=None,
        help="Emit plain text logs instead of JSON",
    )
    parser.add_argument("--metrics-file", type=Path, help="Write Prometheus metrics here when the command finishes")
    parser.add_argument("--workers", dest="build_workers", type=int, help="Threads used to build the index")
    parser.add_argument("--separator", help="Path segment separator (default: /)")
    parser.add_argument(
        "--lowercase",
        action="store_true",
        default=None,
        help="Lowercase terms before indexing and querying",
    )
    parser.add_argument(
        "--keep-empty-segments",
        action="store_true",
        default=None,
        help="Index empty segments produced by leading, trailing or doubled separators",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="List the members of every zip archive in a directory")
    scan.add_argument("directory", type=Path, help="Directory containing *.zip files")
    scan.add_argument("--output", type=Path, help="Write JSONL records here instead of stdout")

    rank = subparsers.add_parser("rank", help="Rank archives by BM25 relevance")
    rank.add_argument("corpus", type=Path, help="JSONL corpus produced by 'scan'")
    rank.add_argument("terms", nargs="+", metavar="TERM", help="Query terms or path-like strings")
    rank.add_argument("--limit", type=int, help="Maximum results to print")

    coverage = subparsers.add_parser("coverage", help="Count how many query terms each archive contains")
    coverage.add_argument("corpus", type=Path, help="JSONL corpus produced by 'scan'")
    coverage.add_argument("terms", nargs="+", metavar="TERM", help="Query terms or path-like strings")
    coverage.add_argument("--min-matches", type=int, default=1, help="Only show archives matching at least K terms")

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        key: value
        for key in ("log_level", "json_logs", "build_workers", "separator", "lowercase", "keep_empty_segments")
        if (value := getattr(args, key)) is not None
    }
    return Settings(**overrides)


def _load_engine(corpus_path: Path, settings: Settings) -> QueryEngine:
    documents = records_to_documents(read_corpus(corpus_path))
    index = build_index(documents, analyzer=settings.build_analyzer(), workers=settings.build_workers)
    logger.info("Index ready for %s", corpus_path.name, extra=dict(describe_index(index)))
    return settings.build_engine(index)


def run_scan(args: argparse.Namespace, settings: Settings) -> int:
    records = scan_archives(args.directory)
    if args.output:
        count = write_corpus(records, args.output)
        logger.info("Wrote %d records to %s", count, args.output)
    else:
        write_corpus(records, sys.stdout.buffer)
        sys.stdout.flush()
    return 0


def run_rank(args: argparse.Namespace, settings: Settings) -> int:
    engine = _load_engine(args.corpus, settings)
    limit = args.limit if args.limit is not None else settings.default_limit
    for result in engine.rank(engine.tokenize_query(*args.terms), limit=limit):
        print(f"{result.score:.6f}\t{result.doc_id}")
    return 0


def run_coverage(args: argparse.Namespace, settings: Settings) -> int:
    engine = _load_engine(args.corpus, settings)
    matches = filter_coverage(engine.coverage(engine.tokenize_query(*args.terms)), args.min_matches)
    for doc_id, match in sorted(matches.items(), key=lambda item: (-item[1].matched, item[0])):
        print(f"{match}\t{doc_id}")
    return 0


_COMMANDS = {
    "scan": run_scan,
    "rank": run_rank,
    "coverage": run_coverage,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ValidationError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.json_logs)
    init_tracing()
    source = getattr(args, "corpus", None) or args.directory
    set_trace_context(generate_trace_id(), generate_span_id(), corpus=source.name)

    try:
        return _COMMANDS[args.command](args, settings)
    except (CorpusFormatError, DuplicateDocumentError, ArchiveReadError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.metrics_file:
            write_metrics(args.metrics_file)
            logger.debug("Wrote metrics to %s", args.metrics_file)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
