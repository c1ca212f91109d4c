import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from lyric_vault.app.app import LyricVaultApp
from lyric_vault.app.data.database import SQLiteLyricRepository
from lyric_vault.config import VaultConfig
from lyric_vault.core.models import Lyric, LyricAnalysis


class FakeProvider:
    """Analysis/adaptation provider that never touches the network."""

    def __init__(
        self,
        analyses: Optional[Dict[str, LyricAnalysis]] = None,
        *,
        default: Optional[LyricAnalysis] = None,
        failing_ids: Iterable[int] = (),
        analysis_error: Optional[Exception] = None,
        connected: bool = True,
        models: Optional[List[str]] = None,
    ) -> None:
        self.analyses = dict(analyses or {})
        self.default = default or LyricAnalysis()
        self.failing_ids = set(failing_ids)
        self.analysis_error = analysis_error
        self.connected = connected
        self.models = list(models if models is not None else ["llama3.2:latest"])
        self.analyze_calls: List[str] = []
        self.adapt_calls: List[int] = []

    def analyze_lyric(self, text: str):
        self.analyze_calls.append(text)
        if self.analysis_error is not None:
            raise self.analysis_error
        analysis = self.analyses.get(text, self.default)
        return analysis, '{"raw": true}'

    def adapt(self, query_text: str, query_analysis: LyricAnalysis, lyric: Lyric, reasons) -> str:
        self.adapt_calls.append(lyric.id)
        if lyric.id in self.failing_ids:
            raise RuntimeError(f"adaptation failed for {lyric.id}")
        return f"adapted #{lyric.id}"

    def continue_lyric(self, text: str, analysis: LyricAnalysis) -> str:
        return "and the night rolls on"

    def test_connection(self) -> bool:
        return self.connected

    def check_model_available(self):
        return any(name.startswith("llama3.2") for name in self.models), list(self.models)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep configuration reads and writes inside the test's temp directory."""

    home = tmp_path / "vault-home"
    monkeypatch.setenv("LYRIC_VAULT_HOME", str(home))
    for name in ("LYRIC_VAULT_MODEL", "LYRIC_VAULT_OLLAMA_URL", "LYRIC_VAULT_DB"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def repository(tmp_path) -> SQLiteLyricRepository:
    repo = SQLiteLyricRepository(str(tmp_path / "data" / "lyrics.db"))
    repo.ensure_database()
    yield repo
    repo.close()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_app(tmp_path):
    """Build apps backed by a temp database and the supplied fake provider."""

    created: List[LyricVaultApp] = []

    def _factory(provider: FakeProvider) -> LyricVaultApp:
        config = VaultConfig(database_path=str(tmp_path / "app" / "lyrics.db"))
        app = LyricVaultApp(config, provider=provider)
        created.append(app)
        return app

    yield _factory
    for app in created:
        app.close()
