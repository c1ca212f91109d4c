import json

import pytest

from lyric_vault.app.cli import main
from lyric_vault.app.services.exceptions import OllamaError
from lyric_vault.core.models import LyricAnalysis

from conftest import FakeProvider


LOVE = LyricAnalysis(themes=["love"], rhyme_patterns=["ight"], mood="sad", imagery_tags=["visual"])
FREEDOM = LyricAnalysis(themes=["freedom"], rhyme_patterns=["road"], mood="joyful")


@pytest.fixture
def provider():
    return FakeProvider(
        {
            "Holding you tonight": LOVE,
            "Open road ahead": FREEDOM,
        },
        default=LyricAnalysis(themes=["love"], rhyme_patterns=["ight"], mood="sad, lonely"),
    )


@pytest.fixture
def run(make_app, provider):
    def _run(*argv):
        return main(list(argv), app_factory=lambda: make_app(provider))

    return _run


def test_add_then_list(run, capsys):
    assert run("add", "Holding you tonight") == 0
    assert run("add", "Open road ahead") == 0
    capsys.readouterr()

    assert run("list", "-r", "1") == 0
    out = capsys.readouterr().out
    assert "Open road ahead" in out
    assert "Holding you tonight" not in out


def test_list_on_empty_vault(run, capsys):
    assert run("list") == 0
    assert "No lyrics found in your vault." in capsys.readouterr().out


def test_search_filters_and_usage(run, capsys):
    run("add", "Holding you tonight")
    run("add", "Open road ahead")
    capsys.readouterr()

    assert run("search", "theme:love") == 0
    out = capsys.readouterr().out
    assert "Search Results (1)" in out
    assert "Holding you tonight" in out

    assert run("search", "nothing useful") == 0
    assert "No valid search filters found." in capsys.readouterr().out


def test_show_and_delete_validate_ids(run, capsys):
    run("add", "Holding you tonight")
    capsys.readouterr()

    assert run("show", "abc") == 1
    assert 'Invalid ID: "abc"' in capsys.readouterr().out
    assert run("show", "42") == 1
    assert "Lyric #42 not found." in capsys.readouterr().out

    assert run("show", "1") == 0
    assert "Holding you tonight" in capsys.readouterr().out

    assert run("delete", "1") == 0
    assert "Lyric #1 deleted." in capsys.readouterr().out
    assert run("delete", "1") == 1


def test_suggest_prints_ranked_matches(run, capsys):
    run("add", "Holding you tonight")
    run("add", "Open road ahead")
    capsys.readouterr()

    assert run("suggest", "Alone in the night") == 0
    out = capsys.readouterr().out
    assert "Found 1 matching lyric" in out
    assert "Holding you tonight" in out
    assert "adapted #1" in out
    assert "Open road ahead" not in out


def test_suggest_json_without_adaptations(run, capsys):
    run("add", "Holding you tonight")
    capsys.readouterr()

    assert run("suggest", "Alone in the night", "--no-adapt", "--json") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["total_matches"] == 1
    assert payload["matches"][0]["candidate_id"] == 1
    assert "adaptation" not in payload["matches"][0]


def test_suggest_on_empty_vault(run, capsys):
    assert run("suggest", "Alone in the night") == 0
    assert "Your lyric vault is empty!" in capsys.readouterr().out


def test_patterns_needs_no_app(capsys):
    def _explode():
        raise AssertionError("patterns should not build the app")

    assert main(["patterns", "Tonight the light is bright"], app_factory=_explode) == 0
    out = capsys.readouterr().out
    assert "`ight`" in out
    assert "tonight, light, bright" in out


def test_continue_prints_continuation(run, capsys):
    assert run("continue", "Wheels on the highway") == 0
    assert "and the night rolls on" in capsys.readouterr().out


def test_setup_reports_connection(run, capsys, isolated_home):
    assert run("setup") == 0
    out = capsys.readouterr().out
    assert "Ollama is running" in out
    assert "Model 'llama3.2' is available" in out
    assert (isolated_home / "config.json").exists()


def test_setup_without_ollama_warns(make_app, capsys):
    offline = FakeProvider(connected=False)

    assert main(["setup"], app_factory=lambda: make_app(offline)) == 0
    out = capsys.readouterr().out
    assert "Cannot connect to Ollama" in out
    assert "Setup complete with warnings." in out


@pytest.mark.parametrize(
    "argv,message",
    [
        (("add", "Holding you tonight"), "Failed to add lyric"),
        (("continue", "Wheels on the highway"), "Failed to continue lyric"),
    ],
)
def test_provider_errors_exit_with_status_one(make_app, capsys, argv, message):
    broken = FakeProvider(analysis_error=OllamaError("Ollama request failed: server hung up"))

    assert main(list(argv), app_factory=lambda: make_app(broken)) == 1
    assert message in capsys.readouterr().out


def test_suggest_provider_error_exits_with_status_one(make_app, provider, capsys):
    make_app(provider).add_lyric("Holding you tonight")
    provider.analysis_error = OllamaError("Ollama request failed: server hung up")

    assert main(["suggest", "Alone in the night"], app_factory=lambda: make_app(provider)) == 1
    assert "Failed to find suggestions" in capsys.readouterr().out
