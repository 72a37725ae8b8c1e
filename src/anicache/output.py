"""Terminal output for anicache.

Catalog payloads and cache tables are written to **stdout** so they can be
piped into ``jq`` or another tool. Everything else (cache hit/miss traces,
persistence warnings, errors) goes to **stderr**.

The payload format is one of :class:`OutputFormat`. ``AUTO`` picks Rich
rendering on an interactive terminal and tab-separated plain text when
piped. ``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all disable colour.

The root CLI callback installs one :class:`OutputManager` with
:func:`set_output`; library code reports through :func:`get_output` or the
module-level shortcuts (:func:`warning`, :func:`debug`, ...).
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Payload formats accepted by ``--json``/``--plain`` and ``output.format``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Level(NamedTuple):
    prefix: str
    markup: str
    quiet_hides: bool
    verbose_only: bool


# Diagnostic levels written to stderr. ``markup`` wraps the message in Rich mode.
_LEVELS = {
    "debug": _Level("[debug] ", "[dim]\\[debug] {}[/dim]", False, True),
    "info": _Level("", "{}", True, False),
    "success": _Level("", "[green]{}[/green]", True, False),
    "warning": _Level("Warning: ", "[yellow]Warning:[/yellow] {}", False, False),
    "error": _Level("Error: ", "[bold red]Error:[/bold red] {}", False, False),
}


class OutputManager:
    """Routes payloads to stdout and diagnostics to stderr.

    Args:
        format: Payload format. ``AUTO`` is resolved once, here.
        no_color: Disable colour and Rich markup.
        quiet: Hide ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages (cache hits, misses, evictions).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(OutputFormat(format), self._no_color)
        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format is OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Payloads (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Write a catalog payload to stdout.

        JSON mode dumps it indented. Plain mode writes one ``key<TAB>value``
        line per field of a mapping, or one line per list item. Rich mode
        syntax-highlights mappings and lists.
        """
        if self._format is OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format is OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            self._stdout.print(
                Syntax(_to_json(data), "json", theme="monokai", word_wrap=True)
            )
        else:
            self._stdout.print(str(data))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows to stdout: JSON records, TSV, or a Rich table."""
        if self._format is OutputFormat.JSON:
            self.print_data(_to_json([dict(zip(headers, row)) for row in rows]))
            return
        if self._format is OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return
        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        self._diagnose("info", message)

    def success(self, message: str) -> None:
        self._diagnose("success", message)

    def warning(self, message: str) -> None:
        """Report a recoverable problem, e.g. a snapshot that could not be written."""
        self._diagnose("warning", message)

    def error(self, message: str) -> None:
        self._diagnose("error", message)

    def debug(self, message: str) -> None:
        """Trace cache behaviour. Shown only with ``--verbose``."""
        self._diagnose("debug", message)

    def _diagnose(self, level_name: str, message: str) -> None:
        level = _LEVELS[level_name]
        if level.verbose_only and not self._verbose:
            return
        if level.quiet_hides and self._quiet:
            return
        if self._no_color:
            print(f"{level.prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(level.markup.format(message))


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested is not OutputFormat.AUTO:
        return requested
    return OutputFormat.RICH if _is_tty() and not no_color else OutputFormat.PLAIN


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything, or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
