"""Statistical helpers for BM25 scoring.

The functions here stay independent of the index layout so they can be unit
tested on plain numbers.
"""

from __future__ import annotations

from collections.abc import Mapping
import math


DEFAULT_K1 = 1.5
DEFAULT_B = 0.75


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return the BM25 inverse document frequency ``ln((N - df + 0.5) / (df + 0.5) + 1)``.

    The ``+ 1`` inside the logarithm keeps the value positive for every
    ``0 <= df <= N``. An empty corpus yields ``0.0``.
    """

    if total_docs <= 0:
        return 0.0
    df = max(0, min(doc_freq, total_docs))
    return math.log((total_docs - df + 0.5) / (df + 0.5) + 1.0)


def average_length(lengths: Mapping[str, int]) -> float:
    """Arithmetic mean of per-document lengths; ``0.0`` when there are none."""

    if not lengths:
        return 0.0
    return sum(lengths.values()) / len(lengths)


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = DEFAULT_K1, b: float = DEFAULT_B) -> float:
    """Compute the BM25 term weight without IDF.

    A zero average length only happens when every document is empty; the
    length ratio is then taken as 0 instead of dividing by zero.
    """

    if tf <= 0:
        return 0.0
    length_ratio = doc_length / avg_doc_length if avg_doc_length > 0 else 0.0
    denominator = tf + k1 * (1 - b + b * length_ratio)
    return (tf * (k1 + 1)) / denominator
