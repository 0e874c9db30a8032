"""Analyzer utilities that turn path-like strings into index terms.

Analyzers follow a composable tokenizer/filter design: a tokenizer splits a
path on its separator, and filters post-process the token stream. Terms are
compared exactly, so the only normalizations available are the explicit ones
below (lowercasing and dropping empty segments), both opt-in/opt-out through
:class:`PathAnalyzer` arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from typing import Protocol


DEFAULT_SEPARATOR = "/"


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int


class Analyzer(Protocol):
    """Protocol implemented by analyzers."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class SeparatorTokenizer:
    """Split text on a literal separator, yielding every segment (empty ones included)."""

    def __init__(self, separator: str = DEFAULT_SEPARATOR) -> None:
        if not separator:
            raise ValueError("separator must be a non-empty string")
        self.separator = separator

    def __call__(self, text: str) -> Iterator[Token]:
        char_pos = 0
        for position, segment in enumerate(text.split(self.separator)):
            yield Token(
                text=segment,
                position=position,
                start_char=char_pos,
                end_char=char_pos + len(segment),
            )
            char_pos += len(segment) + len(self.separator)


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield replace(token, text=token.text.lower())


class EmptySegmentFilter:
    """Drop the empty segments produced by leading, trailing or doubled separators."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text:
                yield token


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class PathAnalyzer:
    """Analyzer for archive member paths.

    ``"docs/api/index.md"`` becomes ``["docs", "api", "index.md"]``. Case is
    preserved unless ``lowercase`` is set. Empty segments (``"dir/"`` or
    ``"/abs"``) are dropped unless ``keep_empty`` is set, in which case the
    empty string is indexed like any other term.
    """

    def __init__(
        self,
        separator: str = DEFAULT_SEPARATOR,
        *,
        lowercase: bool = False,
        keep_empty: bool = False,
    ) -> None:
        self.separator = separator
        self.lowercase = lowercase
        self.keep_empty = keep_empty
        filters: list[TokenFilter] = []
        if not keep_empty:
            filters.append(EmptySegmentFilter())
        if lowercase:
            filters.append(LowercaseFilter())
        self.pipeline = AnalyzerPipeline(SeparatorTokenizer(separator), filters)

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)

    def terms(self, text: str) -> list[str]:
        """Return just the term strings for ``text``."""
        return [token.text for token in self(text)]

    def __repr__(self) -> str:
        return (
            f"PathAnalyzer(separator={self.separator!r}, lowercase={self.lowercase}, keep_empty={self.keep_empty})"
        )

