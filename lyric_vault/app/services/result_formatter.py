"""Markdown rendering of lyrics and suggestions for the CLI and Gradio UI."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from lyric_vault.core.models import Lyric, MatchResult, SearchQuery, VaultStats

from .suggestion_service import SuggestionReport

DIVIDER = "─" * 40


def format_date(value: Optional[str]) -> str:
    """Render SQLite timestamps as ``Oct 19, 2026``; unknown formats pass through."""

    if not value:
        return ""
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return text
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_success(message: str) -> str:
    return f"✓ {message}"


def format_error(message: str) -> str:
    return f"✗ {message}"


def format_warning(message: str) -> str:
    return f"⚠ {message}"


def format_header(title: str) -> str:
    return f"\n{title}\n{'─' * len(title)}"


class LyricResultFormatter:
    """Render vault records and suggestion reports as markdown-friendly text."""

    def format_lyric(self, lyric: Lyric) -> str:
        lines: List[str] = []
        date = format_date(lyric.created_at)
        lines.append(f"**#{lyric.id}**" + (f" ({date})" if date else ""))
        lines.append(f'"{lyric.lyric_text}"')
        if lyric.themes:
            lines.append(f"Themes: {', '.join(lyric.themes)}")
        if lyric.mood:
            lines.append(f"Mood: {lyric.mood}")
        if lyric.rhyme_patterns:
            lines.append(f"Rhymes: {', '.join(lyric.rhyme_patterns)}")
        if lyric.imagery_tags:
            lines.append(f"Imagery: {', '.join(lyric.imagery_tags)}")
        return "\n".join(lines)

    def format_lyrics(self, lyrics: Sequence[Lyric], title: str) -> str:
        if not lyrics:
            return format_warning("No lyrics found in your vault.")
        blocks = [format_header(f"{title} ({len(lyrics)})")]
        for index, lyric in enumerate(lyrics):
            blocks.append(self.format_lyric(lyric))
            if index < len(lyrics) - 1:
                blocks.append(DIVIDER)
        return "\n".join(blocks)

    def format_search_results(self, lyrics: Sequence[Lyric], query: SearchQuery) -> str:
        filters = " ".join(f"{key}:{value}" for key, value in query.active_filters().items())
        blocks = [
            format_header(f"Search Results ({len(lyrics)})"),
            f"Filters: {filters or '(no filters)'}",
            "",
        ]
        if not lyrics:
            blocks.append(format_warning("No lyrics match your search criteria."))
            return "\n".join(blocks)
        for index, lyric in enumerate(lyrics):
            blocks.append(self.format_lyric(lyric))
            if index < len(lyrics) - 1:
                blocks.append(DIVIDER)
        return "\n".join(blocks)

    def format_suggestion(self, match: MatchResult, index: Optional[int] = None) -> str:
        lines: List[str] = []
        prefix = f"{index + 1}. " if index is not None else ""
        lines.append(f"**{prefix}Match: {round(match.score * 100)}%**")
        lyric = match.lyric
        if lyric is not None:
            lines.append(f'"{lyric.lyric_text}"')
            date = format_date(lyric.created_at)
            lines.append(f"  ID: #{lyric.id}" + (f" | {date}" if date else ""))
        else:
            lines.append(f"  ID: #{match.candidate_id}")
        if match.reasons:
            lines.append(f"Why it matches: {', '.join(match.reasons)}")
        if match.adaptation:
            lines.append("Suggested adaptation:")
            lines.append(f'  "{match.adaptation}"')
        return "\n".join(lines)

    def format_report(self, report: SuggestionReport) -> str:
        if report.vault_empty:
            return "\n".join(
                [
                    format_warning("Your lyric vault is empty!"),
                    'Add some lyrics first with: lyric add "your lyric text"',
                ]
            )
        if not report.matches:
            return "\n".join(
                [
                    format_warning("No matching lyrics found in your vault."),
                    "Try adding more lyrics with varied themes and moods.",
                ]
            )

        plural = "" if report.total_matches == 1 else "s"
        blocks = [format_header(f"Found {report.total_matches} matching lyric{plural}"), ""]
        for index, match in enumerate(report.matches):
            blocks.append(self.format_suggestion(match, index))
            if index < len(report.matches) - 1:
                blocks.append(DIVIDER)
        blocks.append("")
        blocks.append(
            format_success(
                f"Showing top {len(report.matches)} of {report.total_matches} matches"
            )
        )
        return "\n".join(blocks)

    def format_analysis(self, report: SuggestionReport) -> str:
        analysis = report.analysis
        if analysis is None:
            return ""
        return "\n".join(
            [
                f"Found themes: {', '.join(analysis.themes)}",
                f"Detected mood: {analysis.mood}",
            ]
        )

    def format_stats(self, stats: VaultStats) -> str:
        lines = [f"Total lyrics: {stats.total}"]
        if stats.oldest_date:
            lines.append(f"Oldest entry: {format_date(stats.oldest_date)}")
        return "\n".join(lines)

    def format_patterns(self, text: str, patterns: Sequence[str], rhyming: Dict[str, List[str]]) -> str:
        """List each rhyme pattern of ``text`` with the words that rhyme with it."""

        if not patterns:
            return format_warning("No rhyme patterns found (words need at least 3 letters).")
        lines = [format_header(f"Rhyme Patterns ({len(patterns)})")]
        for pattern in patterns:
            words = rhyming.get(pattern) or []
            suffix = f" ← {', '.join(words)}" if words else ""
            lines.append(f"- `{pattern}`{suffix}")
        return "\n".join(lines)


__all__ = [
    "LyricResultFormatter",
    "format_date",
    "format_success",
    "format_error",
    "format_warning",
    "format_header",
    "DIVIDER",
]
