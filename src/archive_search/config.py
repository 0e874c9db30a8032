"""Centralized configuration for archive-search using Pydantic Settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from archive_search.search.analyzers import DEFAULT_SEPARATOR, PathAnalyzer
from archive_search.search.bm25_engine import QueryEngine
from archive_search.search.stats import DEFAULT_B, DEFAULT_K1


if TYPE_CHECKING:
    from archive_search.search.models import Index


class Settings(BaseSettings):
    """Typed configuration loaded from ``ARCHIVE_SEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ARCHIVE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Tokenization
    separator: str = Field(default=DEFAULT_SEPARATOR, min_length=1, description="Path segment separator")
    lowercase: bool = Field(default=False, description="Lowercase terms before indexing and querying")
    keep_empty_segments: bool = Field(
        default=False,
        description="Index the empty segments produced by leading, trailing or doubled separators",
    )

    # Ranking
    bm25_k1: float = Field(default=DEFAULT_K1, gt=0.0, description="BM25 term-frequency saturation")
    bm25_b: float = Field(default=DEFAULT_B, ge=0.0, le=1.0, description="BM25 length normalization")
    default_limit: int = Field(default=10, ge=1, description="Ranked results printed when no --limit is given")

    # Indexing
    build_workers: int = Field(default=1, ge=1, description="Threads used to build postings")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    json_logs: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return normalized.lower()

    def build_analyzer(self) -> PathAnalyzer:
        return PathAnalyzer(self.separator, lowercase=self.lowercase, keep_empty=self.keep_empty_segments)

    def build_engine(self, index: Index) -> QueryEngine:
        return QueryEngine(index, k1=self.bm25_k1, b=self.bm25_b, analyzer=self.build_analyzer())
