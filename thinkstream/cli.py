"""thinkstream CLI — Typer + Rich terminal interface.

Commands: tags, split, run.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import uuid
from collections.abc import AsyncIterator
from pathlib import Path

import typer
from rich.console import Console

from thinkstream import __version__
from thinkstream.adapters.openai_chunks import OpenAIChunkAdapter
from thinkstream.cli_display import EventRenderer, render_tag_table
from thinkstream.errors import ProviderError
from thinkstream.pipeline import ResponseEventPipeline
from thinkstream.registry import load_pipeline_config, load_tag_dictionary
from thinkstream.schemas.events import LifecycleEvent
from thinkstream.schemas.pipeline import RequestStatus
from thinkstream.tags.dictionary import TagDictionary

console = Console()

app = typer.Typer(
    name="thinkstream",
    help="Split streamed model output into reasoning and answer channels.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"thinkstream {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """thinkstream — reasoning/answer stream segmentation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Helpers ──────────────────────────────────────────────────────


def _load_dictionary(tags_file: Path | None) -> TagDictionary:
    """Load the tag dictionary, exit on error."""
    try:
        return load_tag_dictionary(tags_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading tag dictionary:[/red] {e}")
        raise typer.Exit(1) from None


async def _replay_chunks(text: str, chunk_size: int) -> AsyncIterator[dict]:
    """Yield ``text`` as OpenAI-style chunks of ``chunk_size`` characters."""
    for i in range(0, len(text), chunk_size):
        yield {"choices": [{"delta": {"content": text[i:i + chunk_size]}, "finish_reason": None}]}
    yield {"choices": [{"delta": {}, "finish_reason": "stop"}]}


def _json_sink(event: LifecycleEvent) -> None:
    console.print_json(event.model_dump_json())


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def tags(
    model: str = typer.Argument(None, help="Show the tag pair used for this model id."),
    tags_file: Path = typer.Option(None, "--tags-file", help="Alternate tags.toml."),
) -> None:
    """Show the tag dictionary, or the tag pair for one model."""
    dictionary = _load_dictionary(tags_file)
    if model:
        pair = dictionary.lookup(model)
        console.print(f"[bold]{model}[/bold]")
        console.print(f"  opening:   {pair.opening_tag}", markup=False)
        console.print(f"  closing:   {pair.closing_tag}", markup=False)
        console.print(f"  separator: {pair.separator!r}", markup=False)
        return
    console.print(render_tag_table(dictionary.dialects, dictionary.default))


@app.command()
def split(
    file: Path = typer.Argument(..., help="Text file holding a complete model response."),
    model: str = typer.Option("", "--model", "-m", help="Model id used to pick the tag pair."),
    chunk_size: int = typer.Option(
        8, "--chunk-size", "-c", min=1, help="Characters per replayed chunk."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print events as JSON."),
    tags_file: Path = typer.Option(None, "--tags-file", help="Alternate tags.toml."),
) -> None:
    """Replay a saved response through the pipeline in small chunks."""
    if not file.exists():
        console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(1)

    dictionary = _load_dictionary(tags_file)
    config = load_pipeline_config()
    pipeline = ResponseEventPipeline(
        OpenAIChunkAdapter(),
        dictionary.lookup(model),
        enable_reasoning=config.enable_reasoning,
    )
    sink = _json_sink if as_json else EventRenderer(console)
    text = file.read_text(encoding="utf-8")

    ctx = asyncio.run(pipeline.run(str(uuid.uuid4()), _replay_chunks(text, chunk_size), sink))
    if ctx.status != RequestStatus.COMPLETED:
        raise typer.Exit(1)


@app.command()
def run(
    prompt: str = typer.Argument(..., help="User prompt to send."),
    model: str = typer.Option(..., "--model", "-m", help="LiteLLM model id."),
    system: str = typer.Option("", "--system", "-s", help="System prompt."),
    timeout: int = typer.Option(None, "--timeout", "-t", help="Timeout in seconds."),
    api_key_env: str = typer.Option("", "--api-key-env", help="Env var holding the API key."),
    api_base: str = typer.Option("", "--api-base", help="Custom API base URL."),
    hide_thinking: bool = typer.Option(False, "--hide-thinking", help="Do not print reasoning."),
    tags_file: Path = typer.Option(None, "--tags-file", help="Alternate tags.toml."),
) -> None:
    """Stream a live completion; Ctrl-C cancels the request."""
    from thinkstream.providers.litellm_provider import LiteLLMStreamer

    dictionary = _load_dictionary(tags_file)
    config = load_pipeline_config()
    streamer = LiteLLMStreamer(
        model,
        dictionary=dictionary,
        api_key_env=api_key_env,
        api_base=api_base,
        enable_reasoning=config.enable_reasoning,
        max_retries=config.max_retries,
    )
    request_id = str(uuid.uuid4())
    renderer = EventRenderer(console, show_thinking=not hide_thinking)

    async def _main():
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, streamer.registry.cancel, request_id)
        except (NotImplementedError, RuntimeError):
            pass
        return await streamer.stream(
            [{"role": "user", "content": prompt}],
            renderer,
            system=system,
            request_id=request_id,
            timeout=timeout or config.default_timeout,
        )

    try:
        ctx = asyncio.run(_main())
    except (ProviderError, TimeoutError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from None

    if ctx.status == RequestStatus.ABORTED:
        console.print()
        console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(130)
    if ctx.status != RequestStatus.COMPLETED:
        raise typer.Exit(1)
