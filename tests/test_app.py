import pytest

from lyric_vault.app.app import LyricVaultApp, _should_share_interface
from lyric_vault.app.services.ollama_client import OllamaClient
from lyric_vault.config import VaultConfig, load_config
from lyric_vault.core.models import LyricAnalysis

from conftest import FakeProvider


def test_add_lyric_stores_provider_analysis(make_app):
    provider = FakeProvider(default=LyricAnalysis(themes=["Night"], mood="calm"))
    app = make_app(provider)

    lyric = app.add_lyric("Quiet streets at night")

    assert lyric.id == 1
    assert lyric.themes == ["night"]
    assert lyric.raw_analysis == '{"raw": true}'
    assert app.stats().total == 1
    assert [item.id for item in app.recent_lyrics()] == [1]


def test_add_lyric_rejects_blank_text_without_calling_provider(make_app):
    provider = FakeProvider()
    app = make_app(provider)

    with pytest.raises(ValueError):
        app.add_lyric("   ")
    assert provider.analyze_calls == []


def test_search_with_no_filters_skips_storage(make_app):
    app = make_app(FakeProvider())
    app.add_lyric("Anything")

    query, results = app.search_lyrics("just words")

    assert query.is_empty()
    assert results == []


def test_rhyme_patterns_maps_patterns_to_words():
    patterns, rhyming = LyricVaultApp.rhyme_patterns("Fire and desire burn higher")

    assert patterns == ["fire", "and", "sire", "burn", "gher"]
    assert rhyming["fire"] == ["fire", "desire"]


def test_continue_lyric_returns_analysis_and_line(make_app):
    app = make_app(FakeProvider(default=LyricAnalysis(mood="restless")))

    analysis, line = app.continue_lyric("Wheels on the highway")

    assert analysis.mood == "restless"
    assert line == "and the night rolls on"


def test_update_config_persists_and_swaps_provider(make_app, isolated_home):
    app = make_app(FakeProvider())
    config = VaultConfig(ollama_model="mistral", database_path=app.config.database_path)

    app.update_config(config)

    assert isinstance(app.provider, OllamaClient)
    assert app.suggestion_service.provider is app.provider
    assert app.provider.model == "mistral"
    assert load_config().ollama_model == "mistral"


@pytest.mark.parametrize("value,expected", [("1", True), ("yes", True), ("", False), ("off", False)])
def test_share_flag_from_environment(monkeypatch, value, expected):
    monkeypatch.setenv("LYRIC_VAULT_SHARE", value)
    assert _should_share_interface() is expected
