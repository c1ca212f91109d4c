"""Rhyme pattern extraction and lyric matching for Lyric Vault."""

from .factors import FactorOverlap, attribute_overlap, mood_overlap
from .matching import (
    DEFAULT_THRESHOLDS,
    DEFAULT_WEIGHTS,
    MatchEngine,
    MatchThresholds,
    MatchWeights,
    compute_matches,
    rank_matches,
)
from .models import (
    Lyric,
    LyricAnalysis,
    MatchCandidate,
    MatchResult,
    SearchQuery,
    VaultStats,
    lyrics_to_candidates,
)
from .patterns import (
    calculate_rhyme_score,
    extract_rhyme_patterns,
    find_rhyming_words,
    rhyme_match,
)

__all__ = [
    "FactorOverlap",
    "attribute_overlap",
    "mood_overlap",
    "MatchEngine",
    "MatchWeights",
    "MatchThresholds",
    "DEFAULT_WEIGHTS",
    "DEFAULT_THRESHOLDS",
    "compute_matches",
    "rank_matches",
    "Lyric",
    "LyricAnalysis",
    "MatchCandidate",
    "MatchResult",
    "SearchQuery",
    "VaultStats",
    "lyrics_to_candidates",
    "calculate_rhyme_score",
    "extract_rhyme_patterns",
    "find_rhyming_words",
    "rhyme_match",
]
