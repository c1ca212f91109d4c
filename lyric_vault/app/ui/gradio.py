"""User interface assembly for the Gradio front-end."""

from __future__ import annotations

import concurrent.futures
import time
from typing import TYPE_CHECKING, Any, Dict, List

import gradio as gr

from lyric_vault.config import VaultConfig

from ..services.exceptions import LyricVaultError
from ..services.result_formatter import format_error, format_success, format_warning

if TYPE_CHECKING:  # pragma: no cover - used only for typing
    from ..app import LyricVaultApp


def _format_live_events(snapshot: Dict[str, Any]) -> str:
    """Return a markdown summary of the stages recorded so far."""

    events = (snapshot or {}).get("events") or []
    if not events:
        return ""
    output: List[str] = ["#### Progress"]
    for event in events[-6:]:
        name = str(event.get("name", "event"))
        duration = event.get("duration")
        if isinstance(duration, (float, int)):
            output.append(f"- `{name}` took {float(duration):.2f}s")
        else:
            output.append(f"- `{name}`")
    return "\n".join(output)


def create_interface(app: "LyricVaultApp") -> gr.Blocks:
    """Construct the Lyric Vault Blocks UI around ``app``."""

    formatter = app.formatter
    service = app.suggestion_service

    def dashboard_view():
        stats = app.stats()
        recent = app.recent_lyrics(5)
        return formatter.format_stats(stats), formatter.format_lyrics(recent, "Recent Lyrics")

    def add_lyric(text: str):
        if not text or not text.strip():
            return format_warning("Please enter a lyric to save.")
        try:
            lyric = app.add_lyric(text)
        except LyricVaultError as exc:
            return format_error(f"Failed to add lyric: {exc}")
        return "\n".join([format_success(f"Lyric captured (#{lyric.id})"), "", formatter.format_lyric(lyric)])

    def browse(theme: str, rhyme: str, mood: str):
        fields = (("theme", theme), ("rhyme", rhyme), ("mood", mood))
        parts = [f'{key}:"{value.strip()}"' for key, value in fields if value and value.strip()]
        if not parts:
            return formatter.format_lyrics(app.recent_lyrics(50), "All Lyrics")
        query, lyrics = app.search_lyrics(" ".join(parts))
        return formatter.format_search_results(lyrics, query)

    def delete(lyric_id: float):
        identifier = int(lyric_id or 0)
        if identifier <= 0:
            return format_error("Please provide a positive lyric ID.")
        if app.delete_lyric(identifier):
            return format_success(f"Lyric #{identifier} deleted.")
        return format_error(f"Lyric #{identifier} not found.")

    def suggest(text: str):
        """Run a suggestion request while streaming progress to the UI."""

        idle = "Enter a lyric and click **Find Matches**."
        if not text or not text.strip():
            yield "Please enter a lyric to match.", "", idle
            return

        yield "Analyzing your lyric...", "", idle
        start = time.perf_counter()
        report = None
        error_message = None
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(service.suggest, text)
            concurrent.futures.wait([future], timeout=0.25)
            while not future.done():
                elapsed = time.perf_counter() - start
                log = _format_live_events(service.get_latest_telemetry())
                yield f"Working… {elapsed:.1f}s elapsed", log, idle
                concurrent.futures.wait([future], timeout=0.25)
            try:
                report = future.result()
            except Exception as exc:  # pragma: no cover - surfaced in the UI
                error_message = str(exc)

        log = _format_live_events(service.get_latest_telemetry())
        if error_message is not None or report is None:
            yield format_error(f"Failed to find suggestions: {error_message}"), log, idle
            return

        elapsed = time.perf_counter() - start
        summary = formatter.format_analysis(report)
        status = f"Completed in {elapsed:.2f}s" + (f"\n\n{summary}" if summary else "")
        yield status, log, formatter.format_report(report)

    def patterns(text: str):
        found, rhyming = app.rhyme_patterns(text or "")
        return formatter.format_patterns(text or "", found, rhyming)

    def test_connection():
        provider = app.provider
        if not provider.test_connection():
            return format_error("Cannot connect to Ollama. Start it with: ollama serve")
        available, models = provider.check_model_available()
        if available:
            return format_success(f"Ollama is running and model '{app.config.ollama_model}' is available")
        listing = ", ".join(models[:5]) or "none"
        return format_warning(
            f"Model '{app.config.ollama_model}' not found (available: {listing}). "
            f"Install it with: ollama pull {app.config.ollama_model}"
        )

    def save_settings(model: str, url: str):
        config = VaultConfig(
            ollama_model=(model or "").strip() or app.config.ollama_model,
            ollama_url=(url or "").strip() or app.config.ollama_url,
            database_path=app.config.database_path,
            request_timeout=app.config.request_timeout,
        )
        app.update_config(config)
        return format_success("Configuration saved")

    with gr.Blocks(title="Lyric Vault", theme=gr.themes.Soft()) as interface:
        gr.Markdown("## 🎵 Lyric Vault\nCapture lyric ideas and find the ones that fit what you're writing.")

        with gr.Tabs():
            with gr.Tab("Dashboard"):
                stats_md = gr.Markdown()
                recent_md = gr.Markdown()
                refresh_btn = gr.Button("Refresh")

            with gr.Tab("Add Lyric"):
                add_input = gr.Textbox(label="Lyric", lines=3, placeholder="Write a line or two...")
                add_btn = gr.Button("Analyze & Save", variant="primary")
                add_md = gr.Markdown()

            with gr.Tab("Browse"):
                with gr.Row():
                    theme_in = gr.Textbox(label="Theme", placeholder="love")
                    rhyme_in = gr.Textbox(label="Rhyme", placeholder="ight")
                    mood_in = gr.Textbox(label="Mood", placeholder="melancholic")
                browse_btn = gr.Button("Search")
                browse_md = gr.Markdown()
                with gr.Row():
                    delete_in = gr.Number(label="Lyric ID", precision=0)
                    delete_btn = gr.Button("Delete", variant="stop")
                delete_md = gr.Markdown()

            with gr.Tab("Suggest"):
                suggest_in = gr.Textbox(label="Your lyric", lines=3)
                suggest_btn = gr.Button("Find Matches", variant="primary")
                status_md = gr.Markdown("Waiting for a lyric…")
                log_md = gr.Markdown()
                results_md = gr.Markdown()

            with gr.Tab("Rhyme Patterns"):
                patterns_in = gr.Textbox(label="Text", lines=2)
                patterns_btn = gr.Button("Show Patterns")
                patterns_md = gr.Markdown()

            with gr.Tab("Settings"):
                model_in = gr.Textbox(label="Ollama model", value=app.config.ollama_model)
                url_in = gr.Textbox(label="Ollama URL", value=app.config.ollama_url)
                gr.Markdown(f"Database: `{app.config.database_path}`")
                with gr.Row():
                    test_btn = gr.Button("Test Connection")
                    save_btn = gr.Button("Save", variant="primary")
                settings_md = gr.Markdown()

        interface.load(dashboard_view, outputs=[stats_md, recent_md])
        refresh_btn.click(dashboard_view, outputs=[stats_md, recent_md])
        add_btn.click(add_lyric, inputs=[add_input], outputs=[add_md])
        browse_btn.click(browse, inputs=[theme_in, rhyme_in, mood_in], outputs=[browse_md])
        delete_btn.click(delete, inputs=[delete_in], outputs=[delete_md])
        suggest_btn.click(suggest, inputs=[suggest_in], outputs=[status_md, log_md, results_md])
        suggest_in.submit(suggest, inputs=[suggest_in], outputs=[status_md, log_md, results_md])
        patterns_btn.click(patterns, inputs=[patterns_in], outputs=[patterns_md])
        test_btn.click(test_connection, outputs=[settings_md])
        save_btn.click(save_settings, inputs=[model_in, url_in], outputs=[settings_md])

    return interface


__all__ = ["create_interface"]
