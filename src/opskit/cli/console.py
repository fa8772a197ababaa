"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.

A single Rich console targeting stderr is shared by every renderer so
that wrapped-tool output and live progress bars do not fight over the
terminal.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from opskit.exceptions import EnvironmentError

_rich_console: Any = None

LEVEL_STYLES: dict[str, str] = {
    "INFO": "bold blue",
    "SUCCESS": "bold green",
    "WARNING": "bold yellow",
    "ERROR": "bold red",
}


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console() -> Any:
    """Return the shared Rich console instance targeting stderr."""
    global _rich_console
    if _rich_console is None:
        console_class = _load_rich_console_class()
        _rich_console = console_class(stderr=True)
    return _rich_console


def reset_console() -> None:
    """Forget the shared Rich console (used by tests)."""
    global _rich_console
    _rich_console = None


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with Rich fallback."""

    def print(self, *objects: object) -> None:
        """Render with Rich when available, else plain stderr print."""
        try:
            rich_console = get_rich_console()
        except EnvironmentError:
            print(*objects, file=sys.stderr)
            return
        rich_console.print(*objects)

    def out(self, line: str) -> None:
        """Write a line of wrapped-tool output verbatim (no markup)."""
        try:
            rich_console = get_rich_console()
        except EnvironmentError:
            print(line, file=sys.stderr)
            return
        rich_console.out(line, highlight=False)

    def status(self, level: str, message: str) -> None:
        """Render ``[LEVEL] message`` with the level's colour."""
        try:
            rich_console = get_rich_console()
            from rich.text import Text
        except (EnvironmentError, ModuleNotFoundError):
            print(f"[{level}] {message}", file=sys.stderr)
            return
        rich_console.print(
            Text.assemble((f"[{level}]", LEVEL_STYLES.get(level, "")), " ", message)
        )

    def rule(self, title: str = "") -> None:
        """Render a horizontal separator, optionally titled."""
        try:
            rich_console = get_rich_console()
        except EnvironmentError:
            bar = "=" * 60
            print(bar, file=sys.stderr)
            if title:
                print(title, file=sys.stderr)
                print(bar, file=sys.stderr)
            return
        rich_console.rule(title, style="cyan")


console = _ConsoleProxy()


class ConsoleReporter:
    """:class:`~opskit.core.protocols.Reporter` rendering to the console.

    Every status line is mirrored to the ``opskit.cli`` logger so that a
    ``--log`` file records what the user saw.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger("opskit.cli")

    def info(self, message: str) -> None:
        self._logger.info(message)
        console.status("INFO", message)

    def success(self, message: str) -> None:
        self._logger.info("SUCCESS: %s", message)
        console.status("SUCCESS", message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)
        console.status("WARNING", message)

    def error(self, message: str) -> None:
        self._logger.error(message)
        console.status("ERROR", message)

    def section(self, title: str = "") -> None:
        if title:
            self._logger.info("=== %s ===", title)
        console.rule(title)


def escape(text: str) -> str:
    """Escape Rich markup in *text*; a no-op without Rich."""
    try:
        from rich.markup import escape as rich_escape
    except ModuleNotFoundError:
        return text
    return rich_escape(text)
