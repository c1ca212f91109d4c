"""Prompt templates sent to the language model."""

from __future__ import annotations

from typing import Sequence

from lyric_vault.core.models import Lyric, LyricAnalysis


def _joined(values: Sequence[str], fallback: str) -> str:
    return ", ".join(values) or fallback


def analysis_prompt(lyric_text: str) -> str:
    return f"""You are analyzing a lyric fragment. Return ONLY valid JSON (no markdown, no explanation):
{{
  "themes": ["theme1", "theme2", "theme3", "theme4"],
  "rhyme_patterns": ["ending1", "ending2"],
  "mood": "brief mood description",
  "imagery_tags": ["tag1", "tag2", "tag3"]
}}

Lyric: "{lyric_text}"

Guidelines:
- Themes: Core concepts/emotions (max 4). Examples: love, loss, freedom, nostalgia
- Rhyme patterns: Last 3-4 characters of words that could rhyme
- Mood: 2-3 word emotional tone. Examples: "melancholic, reflective"
- Imagery tags: Sensory elements. Examples: visual, auditory, nature

Return ONLY the JSON."""


def suggestion_prompt(
    user_lyric: str,
    user_analysis: LyricAnalysis,
    stored_lyric: Lyric,
    match_reasons: Sequence[str],
) -> str:
    """Ask the model to rework ``stored_lyric`` so it sits alongside ``user_lyric``."""

    return f"""You are a creative lyric writer helping adapt a stored lyric fragment to fit with a new lyric.

CURRENT LYRIC (what the user is writing):
"{user_lyric}"

Current lyric analysis:
- Themes: {_joined(user_analysis.themes, "none identified")}
- Mood: {user_analysis.mood or "unknown"}
- Rhyme patterns: {_joined(user_analysis.rhyme_patterns, "none identified")}

STORED LYRIC (from vault):
"{stored_lyric.lyric_text}"

Stored lyric metadata:
- Themes: {_joined(stored_lyric.themes, "none")}
- Mood: {stored_lyric.mood or "unknown"}
- Rhyme patterns: {_joined(stored_lyric.rhyme_patterns, "none")}

Match reasons: {", ".join(match_reasons)}

TASK:
Create a short adaptation of the stored lyric that:
1. Maintains the essence of the stored lyric's imagery and emotion
2. Matches the rhyme scheme of the current lyric where possible
3. Flows naturally as a companion line or verse to the current lyric
4. Preserves the mood and thematic connection

Return ONLY the adapted lyric text (1-2 lines), no explanation or quotes."""


def continuation_prompt(lyric_text: str, analysis: LyricAnalysis) -> str:
    return f"""You are a creative lyric writer. Based on the following lyric fragment, suggest a natural continuation.

LYRIC:
"{lyric_text}"

Analysis:
- Themes: {_joined(analysis.themes, "none identified")}
- Mood: {analysis.mood or "unknown"}
- Rhyme patterns: {_joined(analysis.rhyme_patterns, "none identified")}
- Imagery: {_joined(analysis.imagery_tags, "none identified")}

Suggest a 1-2 line continuation that:
1. Maintains consistent theme and mood
2. Attempts to rhyme with the established patterns
3. Extends the imagery naturally

Return ONLY the continuation (1-2 lines), no explanation."""


__all__ = ["analysis_prompt", "suggestion_prompt", "continuation_prompt"]
