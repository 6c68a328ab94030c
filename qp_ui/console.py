"""Rich-based console presenter for CLI output."""

from __future__ import annotations

from typing import IO, Sequence

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

THEME = Theme(
    {
        "info": "cyan",
        "error": "red",
        "success": "green",
        "accent": "#3ea6ff",
    }
)


class ConsolePresenter:
    """ANSI-friendly status output; everything goes to stderr by default."""

    def __init__(self, stream: IO[str] | None = None):
        self.console = Console(
            theme=THEME,
            file=stream,
            stderr=stream is None,
            highlight=False,
            soft_wrap=True,
        )

    def show_info(self, message: str) -> None:
        self.console.print(message, style="info", markup=False)

    def show_error(self, message: str) -> None:
        self.console.print(message, style="error", markup=False)

    def show_success(self, message: str) -> None:
        self.console.print(message, style="success", markup=False)

    def show_table(self, title: str, columns: Sequence[str], rows: list[Sequence[str]]) -> None:
        table = Table(
            title=f"[b]{title}[/b]",
            border_style="accent",
            header_style="bold white",
            row_styles=("", "dim"),
        )
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)
