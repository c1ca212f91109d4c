"""``lyric`` command line interface."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Callable, Optional, Sequence

from lyric_vault import __version__
from lyric_vault.config import get_config_dir, load_config, save_config
from lyric_vault.utils.logging_config import configure_logging

from .app import LyricVaultApp
from .services.exceptions import LyricVaultError
from .services.result_formatter import (
    DIVIDER,
    LyricResultFormatter,
    format_error,
    format_header,
    format_success,
    format_warning,
)

AppFactory = Callable[[], LyricVaultApp]


def _parse_id(raw: str) -> Optional[int]:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lyric",
        description="Local-first CLI for capturing and finding lyrical ideas.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show INFO logs.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(
        "setup",
        help="Initialize Lyric Vault (test Ollama, create database, save config).",
    )

    add = commands.add_parser("add", help="Add a new lyric idea with AI analysis.")
    add.add_argument("text")

    listing = commands.add_parser("list", help="List recent lyrics from your vault.")
    listing.add_argument("-r", "--recent", type=int, default=10, help="Number of lyrics to show.")

    search = commands.add_parser(
        "search",
        help='Search lyrics by theme, rhyme, or mood (e.g. "theme:love mood:sad").',
    )
    search.add_argument("query")

    show = commands.add_parser("show", help="Show full details of a lyric by ID.")
    show.add_argument("id")

    delete = commands.add_parser("delete", help="Delete a lyric by ID.")
    delete.add_argument("id")

    suggest = commands.add_parser("suggest", help="Find stored lyrics that fit a new one.")
    suggest.add_argument("text")
    suggest.add_argument(
        "--no-adapt",
        action="store_true",
        help="Skip AI adaptations and only rank matches.",
    )
    suggest.add_argument("--json", action="store_true", help="Print the report as JSON.")

    patterns = commands.add_parser(
        "patterns",
        help="Show the rhyme patterns of some text (no AI needed).",
    )
    patterns.add_argument("text")

    cont = commands.add_parser("continue", help="Ask the model to continue a lyric.")
    cont.add_argument("text")

    commands.add_parser("ui", help="Launch the Gradio interface.")
    return parser


# Command handlers -----------------------------------------------------------
def _cmd_setup(app_factory: AppFactory) -> int:
    config = load_config()
    print(format_header("Lyric Vault Setup"))
    print("\nConfiguration:")
    print(f"  Data directory: {get_config_dir()}")
    print(f"  Ollama URL: {config.ollama_url}")
    print(f"  Ollama model: {config.ollama_model}")

    print("\nInitializing database...")
    try:
        app = app_factory()
    except Exception as exc:
        print(format_error(f"Database initialization failed: {exc}"))
        return 1

    try:
        print("\nTesting Ollama connection...")
        connected = app.provider.test_connection()
        if connected:
            print(format_success("Ollama is running"))
            available, models = app.provider.check_model_available()
            if available:
                print(format_success(f"Model '{config.ollama_model}' is available"))
            else:
                print(format_warning(f"Model '{config.ollama_model}' not found"))
                if models:
                    more = "..." if len(models) > 5 else ""
                    print(f"  Available models: {', '.join(models[:5])}{more}")
                print(f"  To install: ollama pull {config.ollama_model}")
        else:
            print(format_error("Cannot connect to Ollama"))
            print("\nTo fix this:")
            print("  1. Install Ollama: https://ollama.com")
            print("  2. Start Ollama: ollama serve")
            print(f"  3. Pull the model: ollama pull {config.ollama_model}")

        stats = app.stats()
        print(format_success("Database ready"))
        print(f"  Location: {app.config.database_path}")
        print(app.formatter.format_stats(stats))
    finally:
        app.close()

    print("\nSaving configuration...")
    try:
        save_config(config)
    except OSError as exc:
        print(format_error(f"Failed to save config: {exc}"))
        return 1
    print(format_success("Configuration saved"))

    print("\n" + DIVIDER)
    if connected:
        print(format_success("Setup complete! You can now start adding lyrics."))
    else:
        print(format_warning("Setup complete with warnings."))
        print("Start Ollama to enable AI features, then run setup again.")
    return 0


def _cmd_add(app: LyricVaultApp, text: str) -> int:
    print("Analyzing lyric with Ollama...")
    try:
        lyric = app.add_lyric(text)
    except (LyricVaultError, ValueError) as exc:
        print(format_error(f"Failed to add lyric: {exc}"))
        return 1
    print(format_success(f"Lyric captured (#{lyric.id})"))
    print()
    print(app.formatter.format_lyric(lyric))
    return 0


def _cmd_list(app: LyricVaultApp, recent: int) -> int:
    lyrics = app.recent_lyrics(recent)
    if not lyrics:
        print(format_warning("No lyrics found in your vault."))
        print('Add some lyrics with: lyric add "your lyric here"')
        return 0
    print(app.formatter.format_lyrics(lyrics, "Recent Lyrics"))
    return 0


def _cmd_search(app: LyricVaultApp, query_text: str) -> int:
    query, lyrics = app.search_lyrics(query_text)
    if query.is_empty():
        print(format_warning("No valid search filters found."))
        print("\nUsage:")
        print('  lyric search "theme:love"')
        print('  lyric search "rhyme:ight"')
        print('  lyric search "mood:sad"')
        print('  lyric search "theme:love mood:melancholic"')
        return 0
    print(app.formatter.format_search_results(lyrics, query))
    return 0


def _cmd_show(app: LyricVaultApp, raw_id: str) -> int:
    lyric_id = _parse_id(raw_id)
    if lyric_id is None:
        print(format_error(f'Invalid ID: "{raw_id}". Please provide a positive integer.'))
        return 1
    lyric = app.get_lyric(lyric_id)
    if lyric is None:
        print(format_error(f"Lyric #{lyric_id} not found."))
        print('Use "lyric list" to see all lyrics in your vault.')
        return 1
    print(format_header(f"Lyric #{lyric_id}"))
    print(app.formatter.format_lyric(lyric))
    return 0


def _cmd_delete(app: LyricVaultApp, raw_id: str) -> int:
    lyric_id = _parse_id(raw_id)
    if lyric_id is None:
        print(format_error(f'Invalid ID: "{raw_id}". Please provide a positive integer.'))
        return 1
    lyric = app.get_lyric(lyric_id)
    if lyric is None:
        print(format_error(f"Lyric #{lyric_id} not found."))
        print('Use "lyric list" to see all lyrics in your vault.')
        return 1
    if not app.delete_lyric(lyric_id):
        print(format_error(f"Failed to delete lyric #{lyric_id}."))
        return 1
    preview = lyric.lyric_text[:50] + ("..." if len(lyric.lyric_text) > 50 else "")
    print(format_success(f"Lyric #{lyric_id} deleted."))
    print(f'  "{preview}"')
    return 0


def _cmd_suggest(app: LyricVaultApp, text: str, *, adapt: bool, as_json: bool) -> int:
    try:
        report = app.suggest(text, adapt=adapt)
    except LyricVaultError as exc:
        print(format_error(f"Failed to find suggestions: {exc}"))
        return 1
    if as_json:
        json.dump(report.as_dict(), sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
        return 0
    summary = app.formatter.format_analysis(report)
    if summary:
        print(summary)
        print()
    print(app.formatter.format_report(report))
    return 0


def _cmd_patterns(text: str) -> int:
    patterns, rhyming = LyricVaultApp.rhyme_patterns(text)
    print(LyricResultFormatter().format_patterns(text, patterns, rhyming))
    return 0


def _cmd_continue(app: LyricVaultApp, text: str) -> int:
    try:
        _, continuation = app.continue_lyric(text)
    except LyricVaultError as exc:
        print(format_error(f"Failed to continue lyric: {exc}"))
        return 1
    print(f'"{text}"')
    print(f'  "{continuation}"')
    return 0


def main(argv: Sequence[str] | None = None, *, app_factory: Optional[AppFactory] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(default=logging.INFO if args.verbose else logging.WARNING)

    if args.command == "patterns":
        return _cmd_patterns(args.text)
    if args.command == "ui":
        from .app import main as launch_ui

        launch_ui()
        return 0

    factory: AppFactory = app_factory or LyricVaultApp
    if args.command == "setup":
        return _cmd_setup(factory)

    app = factory()
    try:
        if args.command == "add":
            return _cmd_add(app, args.text)
        if args.command == "list":
            return _cmd_list(app, args.recent)
        if args.command == "search":
            return _cmd_search(app, args.query)
        if args.command == "show":
            return _cmd_show(app, args.id)
        if args.command == "delete":
            return _cmd_delete(app, args.id)
        if args.command == "suggest":
            return _cmd_suggest(app, args.text, adapt=not args.no_adapt, as_json=args.json)
        if args.command == "continue":
            return _cmd_continue(app, args.text)
    finally:
        app.close()

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
