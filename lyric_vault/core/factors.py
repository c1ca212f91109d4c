"""Overlap scores for theme, imagery and mood descriptors."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence


_MOOD_SPLIT_PATTERN = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class FactorOverlap:
    """Overlap score plus the input-side elements that found a partner."""

    score: float = 0.0
    shared: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.score > 0


def _contains_either_way(left: str, right: str) -> bool:
    return left in right or right in left


def attribute_overlap(input_values: Sequence[str], candidate_values: Sequence[str]) -> FactorOverlap:
    """Score the share of ``input_values`` that overlap ``candidate_values``.

    Two descriptors overlap when either is a case-insensitive substring of the
    other, so ``"love"`` overlaps ``"lovelorn"``.
    """

    lowered_candidates = [value.lower() for value in candidate_values]
    shared: List[str] = []
    for value in input_values:
        if value in shared:
            continue
        lowered = value.lower()
        if any(_contains_either_way(lowered, other) for other in lowered_candidates):
            shared.append(value)

    score = min(len(shared) / max(len(input_values), 1), 1.0)
    return FactorOverlap(score=score, shared=shared)


def mood_words(mood: str) -> List[str]:
    """Split a mood description such as ``"melancholic, reflective"`` into words."""

    words = _MOOD_SPLIT_PATTERN.split((mood or "").lower())
    return list(dict.fromkeys(word for word in words if word))


def mood_overlap(input_mood: str, candidate_mood: str) -> FactorOverlap:
    """Score the share of the input's mood words found in the candidate's mood."""

    if not input_mood or not candidate_mood:
        return FactorOverlap()
    return attribute_overlap(mood_words(input_mood), mood_words(candidate_mood))


__all__ = ["FactorOverlap", "attribute_overlap", "mood_overlap", "mood_words"]
