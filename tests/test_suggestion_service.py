from __future__ import annotations

import threading

import pytest

from lyric_vault.app.services.exceptions import AnalysisParseError
from lyric_vault.app.services.suggestion_service import SuggestionService
from lyric_vault.core.models import LyricAnalysis
from lyric_vault.utils.telemetry import StructuredTelemetry

from conftest import FakeProvider


class FakeClock:
    """Deterministic clock used to drive telemetry timers in tests."""

    def __init__(self, step: float = 0.01) -> None:
        self._current = 0.0
        self._step = step

    def __call__(self) -> float:
        value = self._current
        self._current += self._step
        return value


QUERY = LyricAnalysis(
    themes=["nostalgia", "memory"],
    rhyme_patterns=["ight"],
    mood="melancholic, reflective",
)


def _store(repository, text, **fields):
    return repository.insert_lyric(text, LyricAnalysis(**fields))


def _service(repository, provider, **kwargs):
    telemetry = StructuredTelemetry(time_fn=FakeClock())
    return SuggestionService(repository=repository, provider=provider, telemetry=telemetry, **kwargs)


def test_empty_vault_skips_analysis(repository):
    provider = FakeProvider(default=QUERY)
    service = _service(repository, provider)

    report = service.suggest("anything at all")

    assert report.vault_empty
    assert report.matches == []
    assert report.analysis is None
    assert provider.analyze_calls == []


def test_suggest_ranks_and_adapts_top_matches(repository):
    strong = _store(repository, "strong", themes=["nostalgia"], rhyme_patterns=["ight"], mood="melancholic")
    weak = _store(repository, "weak", themes=["memory lane"])
    _store(repository, "unrelated", themes=["freedom"], mood="joyful")
    provider = FakeProvider(default=QUERY)
    service = _service(repository, provider)

    report = service.suggest("my lyric tonight")

    assert report.vault_size == 3
    assert report.total_matches == 2
    assert [match.candidate_id for match in report.matches] == [strong, weak]
    assert [match.adaptation for match in report.matches] == [f"adapted #{strong}", f"adapted #{weak}"]
    assert report.matches[0].lyric.lyric_text == "strong"
    assert provider.analyze_calls == ["my lyric tonight"]


def test_only_top_three_are_adapted(repository):
    ids = [_store(repository, f"line {index}", themes=["nostalgia"]) for index in range(6)]
    provider = FakeProvider(default=QUERY)
    service = _service(repository, provider)

    report = service.suggest("query")

    assert report.total_matches == 6
    assert len(report.matches) == 5
    # Equal scores keep storage order, which is newest first.
    assert [match.candidate_id for match in report.matches] == list(reversed(ids))[:5]
    assert [match.adaptation is not None for match in report.matches] == [True, True, True, False, False]
    assert sorted(provider.adapt_calls) == sorted(list(reversed(ids))[:3])


def test_adaptation_failure_leaves_other_matches_intact(repository):
    ids = [_store(repository, f"line {index}", themes=["nostalgia"]) for index in range(3)]
    newest, middle, oldest = list(reversed(ids))
    provider = FakeProvider(default=QUERY, failing_ids=[middle])
    service = _service(repository, provider)

    report = service.suggest("query")

    assert [match.candidate_id for match in report.matches] == [newest, middle, oldest]
    assert report.matches[0].adaptation == f"adapted #{newest}"
    assert report.matches[1].adaptation is None
    assert report.matches[2].adaptation == f"adapted #{oldest}"
    assert service.get_latest_telemetry()["counters"]["adaptation.failed"] == 1.0


def test_no_adapt_skips_generation(repository):
    _store(repository, "stored", themes=["nostalgia"])
    provider = FakeProvider(default=QUERY)
    service = _service(repository, provider)

    report = service.suggest("query", adapt=False)

    assert report.total_matches == 1
    assert report.matches[0].adaptation is None
    assert report.matches[0].adapt is True
    assert provider.adapt_calls == []


def test_analysis_error_propagates(repository):
    _store(repository, "stored", themes=["nostalgia"])
    provider = FakeProvider(analysis_error=AnalysisParseError("bad json"))
    service = _service(repository, provider)

    with pytest.raises(AnalysisParseError):
        service.suggest("query")

    assert service.get_latest_telemetry()["counters"]["suggest.failed"] == 1.0


def test_telemetry_records_stage_timings(repository):
    _store(repository, "stored", themes=["nostalgia"])
    service = _service(repository, FakeProvider(default=QUERY))

    service.suggest("query")
    snapshot = service.get_latest_telemetry()

    assert snapshot["name"] == "suggest"
    assert {"analysis", "scoring", "adaptation"} <= set(snapshot["timings"])
    assert snapshot["metadata"]["vault.size"] == 1
    assert snapshot["metadata"]["result.total"] == 1
    scoring = [event for event in snapshot["events"] if event["name"] == "scoring"][0]
    assert scoring["metadata"] == {"candidates": 1, "retained": 1}


def test_report_serialises_to_dict(repository):
    lyric_id = _store(repository, "stored", themes=["nostalgia"])
    service = _service(repository, FakeProvider(default=QUERY))

    payload = service.suggest("query").as_dict()

    assert payload["query_text"] == "query"
    assert payload["analysis"]["themes"] == ["nostalgia", "memory"]
    assert payload["matches"][0]["candidate_id"] == lyric_id
    assert payload["matches"][0]["reasons"] == ["Shared themes: nostalgia"]
    assert payload["matches"][0]["lyric"]["lyric_text"] == "stored"


class GatedProvider(FakeProvider):
    """Holds the adaptation of one lyric until every other adaptation has finished."""

    def __init__(self, held_id: int, others: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.held_id = held_id
        self._others_done = threading.Semaphore(0)
        self._others = others
        self.finished = []
        self._lock = threading.Lock()

    def adapt(self, query_text, query_analysis, lyric, reasons) -> str:
        if lyric.id == self.held_id:
            for _ in range(self._others):
                assert self._others_done.acquire(timeout=5)
        result = super().adapt(query_text, query_analysis, lyric, reasons)
        with self._lock:
            self.finished.append(lyric.id)
        if lyric.id != self.held_id:
            self._others_done.release()
        return result


def test_adaptations_follow_rank_order_not_completion_order(repository):
    ids = [_store(repository, f"line {index}", themes=["nostalgia"]) for index in range(3)]
    newest, middle, oldest = list(reversed(ids))
    provider = GatedProvider(held_id=newest, others=2, default=QUERY)
    service = _service(repository, provider)

    report = service.suggest("query")

    assert provider.finished[-1] == newest
    assert [match.candidate_id for match in report.matches] == [newest, middle, oldest]
    assert [match.adaptation for match in report.matches] == [
        f"adapted #{newest}",
        f"adapted #{middle}",
        f"adapted #{oldest}",
    ]
