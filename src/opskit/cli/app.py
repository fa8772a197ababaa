"""CLI application entry point and command routing for opskit.

This module is the **sole error boundary** for the entire application.
It catches :class:`~opskit.exceptions.OpskitError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the command
  modules, which delegate to the core services.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from opskit.cli import exit_codes
from opskit.cli.console import ConsoleReporter, console, escape
from opskit.config import Settings
from opskit.exceptions import OpskitError
from opskit.version import __version__

_logger = logging.getLogger("opskit.cli")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Construct the top-level argument parser with every sub-command."""
    from opskit.cli.commands import register_all

    parser = argparse.ArgumentParser(
        prog="opskit",
        description="Developer and operations task runner wrapping npm, git, kubectl, gcloud and friends.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log",
        type=Path,
        default=settings.log_file,
        metavar="FILE",
        help="Append all output to FILE.",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=settings.dry_run,
        help="Print mutating commands instead of running them.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    register_all(subparsers)
    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the opskit CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    from opskit.cli.context import CommandContext
    from opskit.infra.logging_setup import setup_logging
    from opskit.infra.subprocess_runner import SubprocessRunner

    settings = Settings.from_env()
    parser = _build_parser(settings)
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return exit_codes.SUCCESS

    setup_logging(settings.log_level, args.log)
    _logger.info("opskit %s: %s", __version__, args.command)

    ctx = CommandContext(
        settings=settings,
        runner=SubprocessRunner(dry_run=args.dry_run, on_output=console.out),
        reporter=ConsoleReporter(),
    )
    if args.dry_run:
        ctx.reporter.warning("Dry run: mutating commands will only be printed.")
    return handler(args, ctx)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except OpskitError as exc:
        _logger.error("%s", exc)
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        _logger.exception("Unexpected error")
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
