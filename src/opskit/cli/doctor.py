"""``opskit doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising which
of the wrapped command-line tools are available.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys

from opskit.cli import exit_codes
from opskit.cli.console import console
from opskit.infra.tool_detector import WRAPPED_TOOLS, ToolStatus, detect_tool
from opskit.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _opskit_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the opskit version row."""
    return "opskit", __version__, "[green]OK[/green]"


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, "[green]OK[/green]"


def _tool_check(status: ToolStatus) -> tuple[str, str, str]:
    """Return (label, value, status) for one wrapped tool."""
    if status.found:
        return status.name, str(status.path) if status.path else "found", "[green]OK[/green]"
    return status.name, "not found", "[yellow]WARN[/yellow]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    for word in ("FAIL", "WARN", "OK"):
        if word in status:
            return word
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\nopskit doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor() -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` unless a critical check fails (only
        an unsupported Python is critical; missing tools are warnings).
    """
    tools = [detect_tool(name) for name in WRAPPED_TOOLS]
    checks = [
        _opskit_version_check(),
        _python_version_check(),
        _os_check(),
        *(_tool_check(status) for status in tools),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    rich_available = True
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        rich_available = False

    if rich_available:
        table = Table(
            title="opskit doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)
        for label, value, status in checks:
            table.add_row(label, value, status)

        console.print()
        console.print(table)
        console.print()
    else:
        _print_plain_doctor_table(checks)

    missing = [status for status in tools if not status.found and status.install_hint]
    if missing:
        if rich_available:
            console.print("[yellow]Some tools are not installed.[/yellow]")
            console.print("Install them only if you need the matching commands:\n")
            for status in missing:
                console.print(f"  [bold]{status.name}[/bold]: {status.install_hint}")
            console.print()
        else:
            print("Some tools are not installed.", file=sys.stderr)
            print("Install them only if you need the matching commands:\n", file=sys.stderr)
            for status in missing:
                print(f"  {status.name}: {status.install_hint}", file=sys.stderr)
            print(file=sys.stderr)

    if has_failure:
        if rich_available:
            console.print("[bold red]Some checks failed.[/bold red]")
        else:
            print("Some checks failed.", file=sys.stderr)
        return exit_codes.GENERAL_ERROR

    if rich_available:
        console.print("[bold green]All required checks passed.[/bold green]")
    else:
        print("All required checks passed.", file=sys.stderr)
    return exit_codes.SUCCESS
