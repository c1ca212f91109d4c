from __future__ import annotations

from typing import Any, Dict, List

import httpx
import ollama
import pytest

from lyric_vault.app.services.exceptions import (
    AnalysisParseError,
    ModelNotFoundError,
    OllamaError,
    OllamaUnavailableError,
)
from lyric_vault.app.services.ollama_client import (
    OllamaClient,
    clean_generated_text,
    parse_analysis_response,
)
from lyric_vault.config import VaultConfig
from lyric_vault.core.models import Lyric, LyricAnalysis


class StubOllama:
    """Stands in for ``ollama.Client`` and records every request."""

    def __init__(self, responses: List[Any] | None = None, models: Any = None) -> None:
        self.responses = list(responses or [])
        self.models = models if models is not None else {"models": [{"model": "llama3.2:latest"}]}
        self.requests: List[Dict[str, Any]] = []

    def generate(self, **kwargs: Any) -> Dict[str, Any]:
        self.requests.append(kwargs)
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return {"response": outcome}

    def list(self) -> Any:
        if isinstance(self.models, Exception):
            raise self.models
        return self.models


def _client(stub: StubOllama, model: str = "llama3.2") -> OllamaClient:
    return OllamaClient(config=VaultConfig(ollama_model=model, database_path="unused.db"), client=stub)


def test_parse_plain_json():
    analysis = parse_analysis_response(
        '{"themes": ["Love", "loss"], "rhyme_patterns": ["ight"], "mood": "wistful", "imagery_tags": ["visual"]}'
    )
    assert analysis == LyricAnalysis(["love", "loss"], ["ight"], "wistful", ["visual"])


def test_parse_strips_code_fence_and_chatter():
    raw = 'Here you go:\n```json\n{"themes": ["night"], "mood": "calm"}\n```\nEnjoy!'
    analysis = parse_analysis_response(raw)
    assert analysis.themes == ["night"]
    assert analysis.mood == "calm"

    fenced = '```json\n{"themes": ["sea"]}\n```'
    assert parse_analysis_response(fenced).themes == ["sea"]


def test_parse_defaults_missing_mood_to_unknown():
    analysis = parse_analysis_response('{"themes": ["rain"], "rhyme_patterns": "ight"}')
    assert analysis.mood == "unknown"
    assert analysis.rhyme_patterns == []


def test_parse_invalid_json_raises():
    with pytest.raises(AnalysisParseError) as excinfo:
        parse_analysis_response("the model refused to answer")
    assert "the model refused" in str(excinfo.value)

    with pytest.raises(AnalysisParseError):
        parse_analysis_response("[1, 2, 3]")


def test_clean_generated_text_removes_one_layer_of_quotes():
    assert clean_generated_text('  "Under the moonlight"  ') == "Under the moonlight"
    assert clean_generated_text("'single'") == "single"
    assert clean_generated_text('"\'both\'"') == "both"
    assert clean_generated_text('"') == '"'
    assert clean_generated_text("") == ""


def test_analyze_lyric_uses_low_temperature():
    stub = StubOllama(['{"themes": ["love"], "mood": "sad"}'])
    client = _client(stub)

    analysis, raw = client.analyze_lyric("I miss you tonight")

    assert analysis.themes == ["love"]
    assert raw == '{"themes": ["love"], "mood": "sad"}'
    request = stub.requests[0]
    assert request["model"] == "llama3.2"
    assert request["options"] == {"temperature": 0.3}
    assert request["stream"] is False
    assert "I miss you tonight" in request["prompt"]


def test_adapt_builds_prompt_and_cleans_output():
    stub = StubOllama(['"Neon rivers fade tonight"'])
    client = _client(stub)
    lyric = Lyric(id=4, lyric_text="City lights are burning bright", analysis=LyricAnalysis(["city"]))

    adaptation = client.adapt(
        "I walk alone tonight",
        LyricAnalysis(themes=["solitude"], mood="lonely"),
        lyric,
        ["Compatible rhyme patterns"],
    )

    assert adaptation == "Neon rivers fade tonight"
    request = stub.requests[0]
    assert request["options"] == {"temperature": 0.7}
    assert "City lights are burning bright" in request["prompt"]
    assert "I walk alone tonight" in request["prompt"]
    assert "Compatible rhyme patterns" in request["prompt"]


def test_continue_lyric_returns_clean_line():
    stub = StubOllama(["'and the night rolls on'"])
    client = _client(stub)

    assert client.continue_lyric("Wheels on the highway", LyricAnalysis(mood="restless")) == "and the night rolls on"


def test_missing_model_maps_to_model_not_found():
    stub = StubOllama([ollama.ResponseError("model not found", 404)])
    client = _client(stub, model="tinyllama")

    with pytest.raises(ModelNotFoundError) as excinfo:
        client.generate("hello")
    assert "ollama pull tinyllama" in str(excinfo.value)


def test_other_response_errors_map_to_ollama_error():
    stub = StubOllama([ollama.ResponseError("boom", 500)])

    with pytest.raises(OllamaError) as excinfo:
        _client(stub).generate("hello")
    assert not isinstance(excinfo.value, OllamaUnavailableError)


@pytest.mark.parametrize(
    "error",
    [ConnectionError("refused"), httpx.ConnectError("refused"), httpx.ReadTimeout("slow")],
)
def test_transport_errors_map_to_unavailable(error):
    stub = StubOllama([error])

    with pytest.raises(OllamaUnavailableError):
        _client(stub).generate("hello")


def test_connection_and_model_probe():
    stub = StubOllama(models={"models": [{"model": "llama3.2:latest"}, {"name": "mistral"}]})
    client = _client(stub)

    assert client.test_connection() is True
    assert client.check_model_available() == (True, ["llama3.2:latest", "mistral"])
    assert _client(stub, model="phi3").check_model_available() == (False, ["llama3.2:latest", "mistral"])


def test_probe_failures_are_reported_not_raised():
    stub = StubOllama(models=ConnectionError("refused"))
    client = _client(stub)

    assert client.test_connection() is False
    assert client.check_model_available() == (False, [])


@pytest.mark.parametrize(
    "error",
    [httpx.RemoteProtocolError("server hung up"), httpx.ReadError("connection reset")],
)
def test_other_transport_errors_map_to_ollama_error(error):
    stub = StubOllama([error])

    with pytest.raises(OllamaError) as excinfo:
        _client(stub).analyze_lyric("hello")
    assert "Ollama request failed" in str(excinfo.value)
