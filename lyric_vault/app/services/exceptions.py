"""Errors raised by Lyric Vault's service layer."""

from __future__ import annotations


class LyricVaultError(Exception):
    """Base class for recoverable application errors."""


class OllamaError(LyricVaultError):
    """The Ollama server could not complete a request."""


class OllamaUnavailableError(OllamaError):
    """The Ollama server is not reachable or did not answer in time."""


class ModelNotFoundError(OllamaError):
    """The configured model has not been pulled on the Ollama server."""

    def __init__(self, model: str) -> None:
        super().__init__(f"Model '{model}' not found. Please pull it with: ollama pull {model}")
        self.model = model


class AnalysisParseError(OllamaError):
    """The model's analysis response was not valid JSON."""


__all__ = [
    "LyricVaultError",
    "OllamaError",
    "OllamaUnavailableError",
    "ModelNotFoundError",
    "AnalysisParseError",
]
