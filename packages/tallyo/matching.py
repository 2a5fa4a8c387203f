"""Approximate string matching over vendor candidates.

A thin adapter around :mod:`rapidfuzz`. The scoring formula belongs to the
library (``fuzz.WRatio``, a token-aware weighted edit-distance ratio applied
after ``utils.default_process`` lowercases and strips punctuation); this module
only converts its 0-100 similarity into a 0-1 distance, applies the threshold,
and fixes the ordering.
"""

from __future__ import annotations

from collections.abc import Sequence

from rapidfuzz import fuzz, process, utils

from .models import ScoredMatch, VendorCandidate

# Maximum distance accepted when a caller does not pass its own threshold.
DEFAULT_THRESHOLD = 0.6


def _similarity_cutoff(threshold: float | None) -> float | None:
    if threshold is None:
        return None
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [0, 1], got {threshold!r}")
    return (1.0 - threshold) * 100.0


def search(
    query: str,
    candidates: Sequence[VendorCandidate],
    *,
    key: str = "vendor",
    threshold: float | None = DEFAULT_THRESHOLD,
) -> list[ScoredMatch]:
    """Return candidates similar to ``query``, best match first.

    Parameters
    ----------
    query:
        The raw string to look up.
    candidates:
        Candidates to score. Their order is the tie-breaker between equal
        scores.
    key:
        Name of the candidate attribute to compare against (``"vendor"`` or
        ``"display_vendor"``). ``None`` values compare as empty strings.
    threshold:
        Maximum accepted distance in ``[0, 1]``. ``None`` returns every
        candidate.

    Returns
    -------
    list[ScoredMatch]
        Matches ordered by ascending distance, then by candidate position.
    """

    if not query or not candidates:
        return []

    choices = [getattr(c, key) or "" for c in candidates]
    results = process.extract(
        query,
        choices,
        scorer=fuzz.WRatio,
        processor=utils.default_process,
        score_cutoff=_similarity_cutoff(threshold),
        limit=None,
    )

    matches = [
        ScoredMatch(candidate=candidates[idx], score=1.0 - (score / 100.0), index=idx)
        for _choice, score, idx in results
    ]
    matches.sort(key=lambda m: (m.score, m.index))
    return matches


def best_match(
    query: str,
    candidates: Sequence[VendorCandidate],
    *,
    key: str = "vendor",
    threshold: float | None = DEFAULT_THRESHOLD,
) -> ScoredMatch | None:
    """Return the top result of :func:`search`, or ``None`` when nothing matches."""

    matches = search(query, candidates, key=key, threshold=threshold)
    return matches[0] if matches else None


__all__ = ["DEFAULT_THRESHOLD", "search", "best_match"]
