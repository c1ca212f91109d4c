"""Weighted similarity scoring and ranking of stored lyrics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from .factors import attribute_overlap, mood_overlap
from .models import LyricAnalysis, MatchCandidate, MatchResult
from .patterns import calculate_rhyme_score


@dataclass(frozen=True)
class MatchWeights:
    theme: float = 0.35
    rhyme: float = 0.30
    mood: float = 0.25
    imagery: float = 0.10


@dataclass(frozen=True)
class MatchThresholds:
    """Cut-offs applied while scoring and selecting matches.

    ``min_score`` is the retention floor, ``rhyme_reason`` the rhyme score a
    candidate must exceed before "Compatible rhyme patterns" is reported.
    """

    min_score: float = 0.1
    rhyme_reason: float = 0.3
    display_limit: int = 5
    adaptation_limit: int = 3


DEFAULT_WEIGHTS = MatchWeights()
DEFAULT_THRESHOLDS = MatchThresholds()


def _coerce_analysis(value: Any) -> LyricAnalysis:
    if isinstance(value, LyricAnalysis):
        # Instances may be built by hand with None or non-string fields.
        return LyricAnalysis.from_mapping(vars(value))
    if isinstance(value, Mapping):
        return LyricAnalysis.from_mapping(value)
    return LyricAnalysis()


class MatchEngine:
    """Scores candidates against a query analysis and ranks the survivors."""

    def __init__(
        self,
        weights: Optional[MatchWeights] = None,
        thresholds: Optional[MatchThresholds] = None,
    ) -> None:
        self.weights = weights or DEFAULT_WEIGHTS
        self.thresholds = thresholds or DEFAULT_THRESHOLDS

    def evaluate(self, query: Any, candidate: Any) -> Tuple[float, List[str]]:
        """Return the aggregate score of ``candidate`` and the reasons behind it."""

        query = _coerce_analysis(query)
        candidate = _coerce_analysis(candidate)
        weights = self.weights

        reasons: List[str] = []
        total = 0.0
        weight_total = 0.0

        themes = attribute_overlap(query.themes, candidate.themes)
        total += themes.score * weights.theme
        weight_total += weights.theme
        if themes.score > 0:
            reasons.append(f"Shared themes: {', '.join(themes.shared)}")

        rhyme_score = calculate_rhyme_score(query.rhyme_patterns, candidate.rhyme_patterns)
        total += rhyme_score * weights.rhyme
        weight_total += weights.rhyme
        if rhyme_score > self.thresholds.rhyme_reason:
            reasons.append("Compatible rhyme patterns")

        mood = mood_overlap(query.mood, candidate.mood)
        total += mood.score * weights.mood
        weight_total += weights.mood
        if mood.score > 0:
            reasons.append(f"Similar mood: {candidate.mood}")

        imagery = attribute_overlap(query.imagery_tags, candidate.imagery_tags)
        total += imagery.score * weights.imagery
        weight_total += weights.imagery
        if imagery.score > 0:
            reasons.append(f"Matching imagery: {', '.join(imagery.shared)}")

        # weight_total sums to (almost exactly) 1.0; dividing keeps the score
        # identical to the historical normalised value.
        score = total / weight_total if weight_total > 0 else 0.0
        return score, reasons

    def is_retained(self, score: float, reasons: Sequence[str]) -> bool:
        return score > self.thresholds.min_score and bool(reasons)

    def score_candidates(
        self,
        query: Any,
        candidates: Iterable[MatchCandidate],
    ) -> List[MatchResult]:
        """Evaluate every candidate and keep those passing the retention filter."""

        retained: List[MatchResult] = []
        for candidate in candidates:
            score, reasons = self.evaluate(query, candidate.analysis)
            if self.is_retained(score, reasons):
                retained.append(
                    MatchResult(candidate_id=candidate.candidate_id, score=score, reasons=reasons)
                )
        return retained

    def rank(self, results: Sequence[MatchResult]) -> List[MatchResult]:
        return rank_matches(
            results,
            display_limit=self.thresholds.display_limit,
            adaptation_limit=self.thresholds.adaptation_limit,
        )

    def compute_matches(
        self,
        query: Any,
        candidates: Iterable[MatchCandidate],
    ) -> List[MatchResult]:
        return self.rank(self.score_candidates(query, candidates))


def rank_matches(
    results: Sequence[MatchResult],
    *,
    display_limit: int = DEFAULT_THRESHOLDS.display_limit,
    adaptation_limit: int = DEFAULT_THRESHOLDS.adaptation_limit,
) -> List[MatchResult]:
    """Order ``results`` by descending score and keep the display set.

    Equal scores keep their input order.  The first ``adaptation_limit``
    entries of the display set are flagged with ``adapt=True``.
    """

    display_limit = max(0, int(display_limit))
    adaptation_limit = min(max(0, int(adaptation_limit)), display_limit)

    ranked = sorted(results, key=lambda result: result.score, reverse=True)[:display_limit]
    for position, result in enumerate(ranked):
        result.adapt = position < adaptation_limit
    return ranked


def compute_matches(query: Any, candidates: Iterable[MatchCandidate]) -> List[MatchResult]:
    """Score, filter and rank ``candidates`` with the default weights."""

    return MatchEngine().compute_matches(query, candidates)


__all__ = [
    "MatchWeights",
    "MatchThresholds",
    "DEFAULT_WEIGHTS",
    "DEFAULT_THRESHOLDS",
    "MatchEngine",
    "rank_matches",
    "compute_matches",
]
