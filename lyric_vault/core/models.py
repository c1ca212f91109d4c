"""Dataclasses shared by the matching engine, storage and presentation layers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional


def normalize_attribute_set(values: Any) -> List[str]:
    """Coerce ``values`` into an ordered, deduplicated list of lowercase strings.

    Anything that is not a list or tuple (``None``, a bare string, a number)
    yields an empty set.  Blank elements are dropped.
    """

    if not isinstance(values, (list, tuple)):
        return []

    normalized: List[str] = []
    seen: set[str] = set()
    for value in values:
        if value is None:
            continue
        cleaned = str(value).strip().lower()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        normalized.append(cleaned)
    return normalized


@dataclass
class LyricAnalysis:
    """Semantic metadata describing one lyric fragment."""

    themes: List[str] = field(default_factory=list)
    rhyme_patterns: List[str] = field(default_factory=list)
    mood: str = ""
    imagery_tags: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "LyricAnalysis":
        if not isinstance(data, Mapping):
            return cls()
        mood = data.get("mood")
        return cls(
            themes=normalize_attribute_set(data.get("themes")),
            rhyme_patterns=normalize_attribute_set(data.get("rhyme_patterns")),
            mood=mood.strip() if isinstance(mood, str) else "",
            imagery_tags=normalize_attribute_set(data.get("imagery_tags")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "themes": list(self.themes),
            "rhyme_patterns": list(self.rhyme_patterns),
            "mood": self.mood,
            "imagery_tags": list(self.imagery_tags),
        }


@dataclass(frozen=True)
class MatchCandidate:
    """A stored fragment as seen by the engine: id, analysis and storage order."""

    candidate_id: Any
    analysis: LyricAnalysis
    order: int = 0


@dataclass
class Lyric:
    """A lyric fragment persisted in the vault."""

    id: int
    lyric_text: str
    created_at: str = ""
    analysis: LyricAnalysis = field(default_factory=LyricAnalysis)
    raw_analysis: str = ""

    @property
    def themes(self) -> List[str]:
        return self.analysis.themes

    @property
    def rhyme_patterns(self) -> List[str]:
        return self.analysis.rhyme_patterns

    @property
    def mood(self) -> str:
        return self.analysis.mood

    @property
    def imagery_tags(self) -> List[str]:
        return self.analysis.imagery_tags

    def as_candidate(self, order: int) -> MatchCandidate:
        return MatchCandidate(candidate_id=self.id, analysis=self.analysis, order=order)

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "lyric_text": self.lyric_text,
            "created_at": self.created_at,
            "raw_analysis": self.raw_analysis,
        }
        payload.update(self.analysis.as_dict())
        return payload


@dataclass
class MatchResult:
    """Outcome of scoring one candidate against the query analysis.

    ``adaptation`` is only ever filled in by the suggestion service after the
    engine has ranked the results.
    """

    candidate_id: Any
    score: float
    reasons: List[str] = field(default_factory=list)
    adaptation: Optional[str] = None
    adapt: bool = False
    lyric: Optional[Lyric] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "candidate_id": self.candidate_id,
            "score": self.score,
            "reasons": list(self.reasons),
        }
        if self.adaptation is not None:
            payload["adaptation"] = self.adaptation
        if self.lyric is not None:
            payload["lyric"] = self.lyric.as_dict()
        return payload


_QUERY_KEYS = ("theme", "rhyme", "mood")


@dataclass
class SearchQuery:
    """Substring filters applied to stored lyric metadata."""

    theme: Optional[str] = None
    rhyme: Optional[str] = None
    mood: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "SearchQuery":
        """Parse ``theme:love mood:"deep blue" rhyme:ight`` style query strings."""

        values: Dict[str, str] = {}
        for key in _QUERY_KEYS:
            match = re.search(rf'{key}:(?:"([^"]+)"|(\S+))', text or "", re.IGNORECASE)
            if match:
                values[key] = match.group(1) or match.group(2)
        return cls(**values)

    def is_empty(self) -> bool:
        return not (self.theme or self.rhyme or self.mood)

    def active_filters(self) -> Dict[str, str]:
        return {
            key: value
            for key, value in (("theme", self.theme), ("rhyme", self.rhyme), ("mood", self.mood))
            if value
        }


@dataclass(frozen=True)
class VaultStats:
    total: int
    oldest_date: Optional[str] = None


def lyrics_to_candidates(lyrics: Iterable[Lyric]) -> List[MatchCandidate]:
    """Wrap stored lyrics as engine candidates, preserving their order."""

    return [lyric.as_candidate(order) for order, lyric in enumerate(lyrics)]


__all__ = [
    "LyricAnalysis",
    "Lyric",
    "MatchCandidate",
    "MatchResult",
    "SearchQuery",
    "VaultStats",
    "lyrics_to_candidates",
    "normalize_attribute_set",
]
