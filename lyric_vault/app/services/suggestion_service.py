"""Suggestion workflow: analyse a new lyric, match it, and adapt the best hits."""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lyric_vault.core.matching import MatchEngine
from lyric_vault.core.models import Lyric, LyricAnalysis, MatchResult, lyrics_to_candidates

from ..data.database import SQLiteLyricRepository
from ...utils.observability import (
    add_span_attributes,
    create_counter,
    create_histogram,
    get_logger,
    record_exception,
    start_span,
)
from ...utils.telemetry import StructuredTelemetry


@dataclass
class SuggestionReport:
    """Ranked matches for one query lyric."""

    query_text: str
    analysis: Optional[LyricAnalysis] = None
    matches: List[MatchResult] = field(default_factory=list)
    total_matches: int = 0
    vault_size: int = 0

    @property
    def vault_empty(self) -> bool:
        return self.vault_size == 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "query_text": self.query_text,
            "analysis": self.analysis.as_dict() if self.analysis else None,
            "matches": [match.as_dict() for match in self.matches],
            "total_matches": self.total_matches,
            "vault_size": self.vault_size,
        }


class SuggestionService:
    """Finds stored lyrics that fit a new one and asks the model to adapt them.

    ``provider`` must offer ``analyze_lyric(text) -> (analysis, raw)`` and
    ``adapt(query_text, query_analysis, lyric, reasons) -> str``; the
    :class:`~lyric_vault.app.services.ollama_client.OllamaClient` does both.
    """

    def __init__(
        self,
        *,
        repository: SQLiteLyricRepository,
        provider: Any,
        engine: Optional[MatchEngine] = None,
        telemetry: Optional[StructuredTelemetry] = None,
        max_adaptation_workers: int = 3,
    ) -> None:
        self.repository = repository
        self.provider = provider
        self.engine = engine or MatchEngine()
        self.telemetry = telemetry or StructuredTelemetry()
        self._max_workers = max(1, int(max_adaptation_workers))
        self._logger = get_logger(__name__).bind(component="suggestion_service")

        self._metric_requests = create_counter(
            "lyric_suggestion_requests_total",
            "Suggestion requests received.",
        )
        self._metric_failures = create_counter(
            "lyric_suggestion_failures_total",
            "Suggestion requests aborted by an exception.",
        )
        self._metric_duration = create_histogram(
            "lyric_suggestion_seconds",
            "Latency of suggestion requests.",
        )
        self._metric_adaptations = create_counter(
            "lyric_adaptations_total",
            "Adaptation attempts by outcome.",
            label_names=("outcome",),
        )

    def set_provider(self, provider: Any) -> None:
        self.provider = provider

    def get_latest_telemetry(self) -> Dict[str, Any]:
        return self.telemetry.latest_snapshot()

    # Public API ------------------------------------------------------------
    def suggest(self, query_text: str, *, adapt: bool = True) -> SuggestionReport:
        """Return the best matching stored lyrics for ``query_text``.

        Analysis failures propagate; adaptation failures only leave the
        affected match without an ``adaptation``.
        """

        self._metric_requests.inc()
        self.telemetry.start_trace("suggest")
        with start_span("lyric_vault.suggest", {"query.length": len(query_text or "")}) as span:
            try:
                with self._metric_duration.time():
                    report = self._suggest(query_text, adapt=adapt)
            except Exception as exc:
                self._metric_failures.inc()
                self.telemetry.increment("suggest.failed")
                record_exception(span, exc)
                self._logger.error(
                    "Suggestion request failed",
                    context={"error": str(exc)},
                )
                raise
            add_span_attributes(
                span,
                {
                    "result.total": report.total_matches,
                    "result.shown": len(report.matches),
                },
            )
        return report

    # Internal helpers ------------------------------------------------------
    def _suggest(self, query_text: str, *, adapt: bool) -> SuggestionReport:
        lyrics = self.repository.get_all_lyrics()
        self.telemetry.annotate("vault.size", len(lyrics))
        if not lyrics:
            self._logger.info("Vault is empty; skipping analysis")
            return SuggestionReport(query_text=query_text)

        with self.telemetry.timer("analysis"):
            analysis, _ = self.provider.analyze_lyric(query_text)

        with self.telemetry.timer("scoring", {"candidates": len(lyrics)}) as timing:
            retained = self.engine.score_candidates(analysis, lyrics_to_candidates(lyrics))
            ranked = self.engine.rank(retained)
            timing["retained"] = len(retained)

        by_id = {lyric.id: lyric for lyric in lyrics}
        for result in ranked:
            result.lyric = by_id.get(result.candidate_id)

        if adapt:
            with self.telemetry.timer("adaptation"):
                self._generate_adaptations(query_text, analysis, ranked)

        self.telemetry.annotate("result.total", len(retained))
        self._logger.info(
            "Suggestions computed",
            context={
                "vault_size": len(lyrics),
                "retained": len(retained),
                "shown": len(ranked),
            },
        )
        return SuggestionReport(
            query_text=query_text,
            analysis=analysis,
            matches=ranked,
            total_matches=len(retained),
            vault_size=len(lyrics),
        )

    def _adapt_one(self, query_text: str, analysis: LyricAnalysis, result: MatchResult) -> str:
        lyric = result.lyric or Lyric(id=result.candidate_id, lyric_text="")
        return self.provider.adapt(query_text, analysis, lyric, result.reasons)

    def _generate_adaptations(
        self,
        query_text: str,
        analysis: LyricAnalysis,
        results: List[MatchResult],
    ) -> None:
        targets = [result for result in results if result.adapt]
        if not targets:
            return

        workers = min(self._max_workers, len(targets))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                (result, executor.submit(self._adapt_one, query_text, analysis, result))
                for result in targets
            ]
            # Collected in rank order, not completion order.
            for result, future in futures:
                try:
                    adaptation = future.result()
                except Exception as exc:
                    self._metric_adaptations.labels(outcome="failed").inc()
                    self.telemetry.increment("adaptation.failed")
                    self._logger.warning(
                        "Adaptation failed; keeping match without it",
                        context={"candidate_id": result.candidate_id, "error": str(exc)},
                    )
                    continue
                if adaptation:
                    result.adaptation = adaptation
                    self._metric_adaptations.labels(outcome="succeeded").inc()
                    self.telemetry.increment("adaptation.succeeded")


__all__ = ["SuggestionService", "SuggestionReport"]
