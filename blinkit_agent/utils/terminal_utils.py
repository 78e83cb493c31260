"""
blinkit_agent/utils/terminal_utils.py

Utility functions for terminal input/output.
"""

import json
from typing import Any

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer
from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from blinkit_agent.data_models.catalog import Product


class SlashCommandLexer(Lexer):
    """
    Highlight slash commands (e.g., /search, /quit) in bold.

    The slash command is the text from '/' until the first space.
    """

    def lex_document(self, document: Document) -> Any:
        def get_line(lineno: int) -> StyleAndTextTuples:
            line = document.lines[lineno]
            if line.startswith("/"):
                space_idx = line.find(" ")
                if space_idx == -1:
                    return [("bold", line)]
                return [("bold", line[:space_idx]), ("", line[space_idx:])]
            return [("", line)]

        return get_line


class SlashCommandCompleter(Completer):
    """
    Show slash command suggestions when the input starts with '/'.

    Args:
        commands: List of (command, description) tuples.
    """

    def __init__(self, commands: list[tuple[str, str]]) -> None:
        self._commands = commands

    def get_completions(self, document: Document, complete_event: Any) -> Any:
        text = document.text_before_cursor
        if not text.startswith("/"):
            return
        for cmd, desc in self._commands:
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display=cmd,
                    display_meta=desc,
                )


def to_jsonable(value: Any) -> Any:
    """Convert models (and lists of them) into plain JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def print_error(error: str, next_action: str | None = None, console: Console | None = None) -> None:
    """
    Print an error message with its suggested next action.

    Args:
        error: The error message to display
        next_action: What the user can do about it, if known
        console: Optional Rich Console instance (creates one if not provided)
    """
    if console is None:
        console = Console()

    console.print()
    console.print(f"[bold red]Error:[/bold red] [red]{escape(error)}[/red]")
    if next_action:
        console.print(f"[dim]Next: {escape(next_action)}[/dim]")
    console.print()


def print_result(title: str, result: Any, console: Console | None = None) -> None:
    """
    Print an operation result as pretty JSON, truncated past 150 lines.

    Args:
        title: Panel title
        result: Model, list or dict to display
        console: Optional Rich Console instance (creates one if not provided)
    """
    if console is None:
        console = Console()

    result_json = json.dumps(to_jsonable(result), indent=2, ensure_ascii=False)
    lines = result_json.split("\n")
    if len(lines) > 150:
        display = "\n".join(lines[:150]) + f"\n... ({len(lines) - 150} more lines)"
    else:
        display = result_json
    console.print(Panel(escape(display), title=f"[bold green]{escape(title)}[/bold green]", style="green", box=box.ROUNDED))
    console.print()


def print_products(products: list[Product], console: Console | None = None) -> None:
    """Print products as a table."""
    if console is None:
        console = Console()

    table = Table(box=box.SIMPLE)
    table.add_column("#", style="dim")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Unit", style="dim")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Stock")
    for i, product in enumerate(products, start=1):
        table.add_row(
            str(i),
            product.id,
            escape(product.name),
            escape(product.unit),
            f"₹{product.price:g}",
            "yes" if product.in_stock else "[red]no[/red]",
        )
    console.print(table)
    console.print()
