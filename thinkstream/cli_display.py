"""Rich terminal rendering of lifecycle events.

EventRenderer is a pipeline sink: reasoning text is printed dim, answer
text plain, and a short summary panel follows block-complete.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from thinkstream.schemas.events import (
    BlockComplete,
    ErrorEvent,
    LifecycleEvent,
    TextDeltaEvent,
    ThinkingComplete,
    ThinkingDelta,
)
from thinkstream.schemas.tags import TagPair


class EventRenderer:
    """Streams lifecycle events to a Rich console as they arrive."""

    def __init__(self, console: Console, *, show_thinking: bool = True) -> None:
        self._console = console
        self._show_thinking = show_thinking
        self._in_thinking = False
        self.thinking_ms: int | None = None
        self.events: list[LifecycleEvent] = []

    def __call__(self, event: LifecycleEvent) -> None:
        self.events.append(event)

        if isinstance(event, ThinkingDelta):
            if not self._show_thinking:
                return
            if not self._in_thinking:
                self._console.print(Text("Thinking…", style="bold magenta"))
                self._in_thinking = True
            self._console.print(Text(event.text, style="dim italic"), end="")
        elif isinstance(event, ThinkingComplete):
            self.thinking_ms = event.elapsed_ms
            if self._show_thinking:
                self._console.print()
                self._console.print(
                    Text(f"Thought for {event.elapsed_ms / 1000:.1f}s", style="magenta")
                )
            self._in_thinking = False
        elif isinstance(event, TextDeltaEvent):
            self._console.print(Text(event.text), end="")
        elif isinstance(event, BlockComplete):
            self._console.print()
            if event.response is not None:
                self._console.print(render_summary(event, self.thinking_ms))
        elif isinstance(event, ErrorEvent):
            self._console.print()
            self._console.print(f"[bold red]Error:[/bold red] {event.error.message}")


def render_summary(event: BlockComplete, thinking_ms: int | None = None) -> Panel:
    """Summarize a completed response in a small panel."""
    response = event.response
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    if response is not None:
        table.add_row("Answer chars", str(len(response.text)))
        table.add_row("Reasoning chars", str(len(response.thinking)))
        table.add_row("Finish reason", response.finish_reason or "—")
        if response.usage is not None:
            table.add_row(
                "Tokens",
                f"{response.usage.prompt_tokens} in / {response.usage.completion_tokens} out",
            )
    if thinking_ms is not None:
        table.add_row("Thinking time", f"{thinking_ms / 1000:.1f}s")
    return Panel(table, title="[bold green]Complete[/bold green]", border_style="green")


def render_tag_table(pairs: dict[str, TagPair], default: TagPair) -> Table:
    """Table of the tag dialects known to a dictionary."""
    table = Table(title="Reasoning Tag Dialects")
    table.add_column("Dialect", style="cyan")
    table.add_column("Opening")
    table.add_column("Closing")
    table.add_column("Separator")
    table.add_row("[bold]default[/bold]", default.opening_tag, default.closing_tag,
                  repr(default.separator))
    for name, pair in pairs.items():
        table.add_row(name, pair.opening_tag, pair.closing_tag, repr(pair.separator))
    return table
