"""Application wiring for Lyric Vault."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Tuple

from lyric_vault.config import VaultConfig, load_config, save_config
from lyric_vault.core import (
    Lyric,
    SearchQuery,
    VaultStats,
    extract_rhyme_patterns,
    find_rhyming_words,
)
from lyric_vault.utils.logging_config import configure_logging
from lyric_vault.utils.observability import get_logger

from lyric_vault.app.data.database import SQLiteLyricRepository
from lyric_vault.app.services.ollama_client import OllamaClient
from lyric_vault.app.services.result_formatter import LyricResultFormatter
from lyric_vault.app.services.suggestion_service import SuggestionReport, SuggestionService


class LyricVaultApp:
    """High-level application facade bundling dependencies."""

    def __init__(
        self,
        config: Optional[VaultConfig] = None,
        *,
        repository: Optional[SQLiteLyricRepository] = None,
        provider: Optional[Any] = None,
        suggestion_service: Optional[SuggestionService] = None,
        formatter: Optional[LyricResultFormatter] = None,
    ) -> None:
        self.config = config or load_config()
        self._logger = get_logger(__name__).bind(component="app_facade")

        self.repository = repository or SQLiteLyricRepository(self.config.database_path)
        try:
            row_count = self.repository.ensure_database()
        except Exception as exc:
            self._logger.error(
                "Database initialisation failed",
                context={"db_path": self.config.database_path, "error": str(exc)},
            )
            raise
        self._logger.info(
            "Database ready",
            context={"db_path": self.config.database_path, "row_count": row_count},
        )

        self.provider = provider or OllamaClient(config=self.config)
        self.suggestion_service = suggestion_service or SuggestionService(
            repository=self.repository,
            provider=self.provider,
        )
        if suggestion_service is not None and provider is not None:
            self.suggestion_service.set_provider(provider)
        self.formatter = formatter or LyricResultFormatter()

    # Dependency management -------------------------------------------------
    def set_provider(self, provider: Any) -> None:
        self.provider = provider
        self.suggestion_service.set_provider(provider)

    def update_config(self, config: VaultConfig, *, persist: bool = True) -> None:
        """Switch to a new model/server; the database path applies on restart."""

        self.config = config
        if persist:
            save_config(config)
        self.set_provider(OllamaClient(config=config))

    # Vault operations ------------------------------------------------------
    def add_lyric(self, text: str) -> Lyric:
        """Analyse and store ``text``; provider failures propagate."""

        if not text or not text.strip():
            raise ValueError("Lyric text must not be empty")
        analysis, raw_response = self.provider.analyze_lyric(text)
        lyric_id = self.repository.insert_lyric(text, analysis, raw_response)
        stored = self.repository.get_lyric(lyric_id)
        if stored is None:
            raise LookupError(f"Lyric #{lyric_id} vanished after insert")
        return stored

    def recent_lyrics(self, limit: int = 10) -> List[Lyric]:
        return self.repository.get_recent_lyrics(limit)

    def search_lyrics(self, query_text: str) -> Tuple[SearchQuery, List[Lyric]]:
        query = SearchQuery.parse(query_text)
        if query.is_empty():
            return query, []
        return query, self.repository.search_lyrics(query)

    def get_lyric(self, lyric_id: int) -> Optional[Lyric]:
        return self.repository.get_lyric(lyric_id)

    def delete_lyric(self, lyric_id: int) -> bool:
        return self.repository.delete_lyric(lyric_id)

    def stats(self) -> VaultStats:
        return self.repository.get_stats()

    def suggest(self, text: str, *, adapt: bool = True) -> SuggestionReport:
        return self.suggestion_service.suggest(text, adapt=adapt)

    def continue_lyric(self, text: str) -> Tuple[Any, str]:
        analysis, _ = self.provider.analyze_lyric(text)
        return analysis, self.provider.continue_lyric(text, analysis)

    @staticmethod
    def rhyme_patterns(text: str) -> Tuple[List[str], Dict[str, List[str]]]:
        """Return the rhyme patterns of ``text`` and the words rhyming with each."""

        patterns = extract_rhyme_patterns(text)
        return patterns, {pattern: find_rhyming_words(text, pattern) for pattern in patterns}

    def create_gradio_interface(self):
        from lyric_vault.app.ui.gradio import create_interface

        return create_interface(self)

    def close(self) -> None:
        self.repository.close()


def _should_share_interface() -> bool:
    """Return whether the Gradio UI should request a public share link."""

    env_value = os.environ.get("LYRIC_VAULT_SHARE", "")
    return str(env_value).strip().lower() in {"1", "true", "yes", "on"}


def main() -> None:
    configure_logging()
    app = LyricVaultApp()
    interface = app.create_gradio_interface()
    interface.launch(
        server_name=os.environ.get("LYRIC_VAULT_HOST", "127.0.0.1"),
        server_port=int(os.environ.get("LYRIC_VAULT_PORT", "7860")),
        share=_should_share_interface(),
    )


__all__ = ["LyricVaultApp", "main"]
