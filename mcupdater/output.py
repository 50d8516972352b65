"""Console output formatting for the CLI and the sync engine."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Writes user-facing messages to the terminal.

    Messages are suppressed in quiet mode, errors excepted. In JSON mode
    plain messages go to stderr so that stdout only carries JSON documents.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    @property
    def _message_console(self) -> Console:
        return self.err_console if self.json_output else self.console

    def print(self, message: str = "", style: Optional[str] = None) -> None:
        """Print a plain message."""
        if self.quiet:
            return
        self._message_console.print(message, style=style, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message."""
        self.print(message)

    def heading(self, message: str, style: str = "cyan") -> None:
        """Print a coloured section heading."""
        self.print(message, style=style)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self.print(message, style="green")

    def warning(self, message: str) -> None:
        """Print a warning in yellow."""
        self.print(message, style="yellow")

    def error(self, message: str) -> None:
        """Print an error in red. Shown even in quiet mode."""
        self.err_console.print(message, style="red", markup=False)

    def output_json(self, data: Any) -> None:
        """Print ``data`` as a JSON document on stdout."""
        self.console.print_json(json.dumps(data, default=str))

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        """Print a simple table."""
        if self.quiet:
            return
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self._message_console.print(table)
