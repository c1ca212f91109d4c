"""Ollama client used for lyric analysis and adaptation."""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Sequence, Tuple

import httpx
import ollama

from lyric_vault.config import VaultConfig, load_config
from lyric_vault.core.models import Lyric, LyricAnalysis
from lyric_vault.utils.observability import get_logger

from .exceptions import (
    AnalysisParseError,
    ModelNotFoundError,
    OllamaError,
    OllamaUnavailableError,
)
from .prompts import analysis_prompt, continuation_prompt, suggestion_prompt

ANALYSIS_TEMPERATURE = 0.3
GENERATION_TEMPERATURE = 0.7
PROBE_TIMEOUT = 5.0

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\n?")
_JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def parse_analysis_response(raw_response: str) -> LyricAnalysis:
    """Turn the model's JSON answer into a :class:`LyricAnalysis`.

    Models often wrap the object in a markdown fence or add a sentence of
    chatter around it, so the outermost ``{...}`` block is extracted first.
    """

    payload = (raw_response or "").strip()
    if payload.startswith("```"):
        payload = _CODE_FENCE_PATTERN.sub("", payload).strip()

    match = _JSON_OBJECT_PATTERN.search(payload)
    if match:
        payload = match.group(0)

    try:
        parsed = json.loads(payload)
    except ValueError as exc:
        raise AnalysisParseError(
            f"Failed to parse Ollama response as JSON: {payload[:200]}"
        ) from exc
    if not isinstance(parsed, dict):
        raise AnalysisParseError(
            f"Failed to parse Ollama response as JSON: {payload[:200]}"
        )

    mood = parsed.get("mood")
    parsed["mood"] = mood if isinstance(mood, str) else "unknown"
    return LyricAnalysis.from_mapping(parsed)


def clean_generated_text(text: str) -> str:
    """Trim whitespace and one layer of wrapping quotes from generated lines."""

    cleaned = (text or "").strip()
    for quote in ('"', "'"):
        if len(cleaned) >= 2 and cleaned.startswith(quote) and cleaned.endswith(quote):
            cleaned = cleaned[1:-1]
    return cleaned


def _model_name(entry: Any) -> str:
    for key in ("model", "name"):
        value = getattr(entry, key, None)
        if value is None and isinstance(entry, dict):
            value = entry.get(key)
        if value:
            return str(value)
    return ""


class OllamaClient:
    """Analysis and adaptation provider backed by a local Ollama server."""

    def __init__(
        self,
        model: Optional[str] = None,
        host: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        config: Optional[VaultConfig] = None,
        client: Optional[Any] = None,
    ) -> None:
        resolved = config or load_config()
        self.model = model or resolved.ollama_model
        self.host = host or resolved.ollama_url
        self.timeout = float(timeout if timeout is not None else resolved.request_timeout)
        self._client = client or ollama.Client(host=self.host, timeout=self.timeout)
        self._probe_client = client or ollama.Client(host=self.host, timeout=PROBE_TIMEOUT)
        self._logger = get_logger(__name__).bind(
            component="ollama_client",
            model=self.model,
            host=self.host,
        )

    # Health checks -----------------------------------------------------------
    def _list_models(self) -> List[str]:
        response = self._probe_client.list()
        entries = response["models"] if response is not None else []
        return [name for name in (_model_name(entry) for entry in entries or []) if name]

    def test_connection(self) -> bool:
        try:
            self._list_models()
        except Exception as exc:
            self._logger.warning("Ollama connection test failed", context={"error": str(exc)})
            return False
        return True

    def check_model_available(self) -> Tuple[bool, List[str]]:
        """Return whether the configured model is installed, plus all model names."""

        try:
            models = self._list_models()
        except Exception as exc:
            self._logger.warning("Ollama model listing failed", context={"error": str(exc)})
            return False, []
        return any(name.startswith(self.model) for name in models), models

    # Generation --------------------------------------------------------------
    def _generate(self, prompt: str, temperature: float) -> str:
        try:
            response = self._client.generate(
                model=self.model,
                prompt=prompt,
                stream=False,
                options={"temperature": temperature},
            )
        except ollama.ResponseError as exc:
            if getattr(exc, "status_code", None) == 404:
                raise ModelNotFoundError(self.model) from exc
            raise OllamaError(f"Ollama request failed: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise OllamaUnavailableError(
                "Ollama request timed out. The model may be loading or the request is too complex."
            ) from exc
        except (ConnectionError, httpx.ConnectError) as exc:
            raise OllamaUnavailableError(
                "Ollama is not running. Please start Ollama with: ollama serve"
            ) from exc
        except httpx.HTTPError as exc:
            raise OllamaError(f"Ollama request failed: {exc}") from exc

        return str(response["response"] or "")

    def analyze_lyric(self, lyric_text: str) -> Tuple[LyricAnalysis, str]:
        """Analyse ``lyric_text`` and return the parsed analysis and raw reply."""

        raw_response = self._generate(analysis_prompt(lyric_text), ANALYSIS_TEMPERATURE)
        analysis = parse_analysis_response(raw_response)
        self._logger.info(
            "Lyric analysed",
            context={"themes": analysis.themes, "mood": analysis.mood},
        )
        return analysis, raw_response

    def analyze(self, lyric_text: str) -> LyricAnalysis:
        analysis, _ = self.analyze_lyric(lyric_text)
        return analysis

    def generate(self, prompt: str) -> str:
        return self._generate(prompt, GENERATION_TEMPERATURE)

    def adapt(
        self,
        query_text: str,
        query_analysis: LyricAnalysis,
        lyric: Lyric,
        reasons: Sequence[str],
    ) -> str:
        prompt = suggestion_prompt(query_text, query_analysis, lyric, reasons)
        return clean_generated_text(self.generate(prompt))

    def continue_lyric(self, lyric_text: str, analysis: LyricAnalysis) -> str:
        return clean_generated_text(self.generate(continuation_prompt(lyric_text, analysis)))


__all__ = ["OllamaClient", "parse_analysis_response", "clean_generated_text"]
