"""Interactive prompts for the CLI layer.

This module is responsible for:

* Asking yes/no confirmations before destructive operations.
* Rendering Rich tables of kubeconfig contexts and git stashes.
* Letting the user pick one entry via questionary arrow keys.

Services never prompt; command handlers call these helpers and pass the
answers on.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from opskit.cli.console import console
from opskit.core.git_service import STASH_ACTIONS
from opskit.core.models import KubeContext, StashEntry
from opskit.exceptions import EnvironmentError, ValidationError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive prompts."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for list rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Generic prompts
# ---------------------------------------------------------------------------

def confirm(message: str, *, default: bool = False) -> bool:
    """Ask a yes/no question; cancelling (Esc / Ctrl+C) counts as "no"."""
    questionary = _import_questionary()
    answer: bool | None = questionary.confirm(message, default=default).ask()
    return bool(answer)


def select(message: str, choices: Sequence[tuple[str, str]]) -> str:
    """Let the user pick one of ``(title, value)`` *choices*.

    Raises
    ------
    ValidationError
        If the user cancels the prompt.
    """
    questionary = _import_questionary()
    selected: str | None = questionary.select(
        message,
        choices=[questionary.Choice(title=title, value=value) for title, value in choices],
        use_arrow_keys=True,
        use_shortcuts=False,
    ).ask()  # Returns None on Ctrl+C / Esc

    if selected is None:
        raise ValidationError(
            "No selection made.",
            hint="Use arrow keys to pick an entry, then press Enter.",
        )
    return selected


# ---------------------------------------------------------------------------
# Kubeconfig contexts
# ---------------------------------------------------------------------------

def display_context_table(contexts: Sequence[KubeContext], current: str | None) -> None:
    """Print the contexts as a Rich table, marking *current* with ``*``."""
    table_class = _import_rich_table()
    table = table_class(
        title="Available Contexts",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("", width=1)
    table.add_column("Context", min_width=12)
    table.add_column("Cluster", min_width=12)
    table.add_column("User", min_width=8)
    table.add_column("Namespace")

    for ctx in contexts:
        table.add_row(
            "*" if ctx.name == current else "",
            ctx.name,
            ctx.cluster,
            ctx.user,
            ctx.namespace or "default",
        )

    console.print()
    console.print(table)
    console.print()


def prompt_context_selection(contexts: Sequence[KubeContext], current: str | None) -> str:
    """Show *contexts* and return the name of the one the user picks."""
    display_context_table(contexts, current)
    if len(contexts) == 1:
        console.print(f"Only one matching context found: [bold]{contexts[0].name}[/bold]")
        return contexts[0].name
    return select(
        "Select a context to export:",
        [(f"{ctx.name}  ({ctx.cluster})", ctx.name) for ctx in contexts],
    )


# ---------------------------------------------------------------------------
# Git stashes
# ---------------------------------------------------------------------------

def prompt_stash_selection(stashes: Sequence[StashEntry]) -> str:
    """Return the ref of the stash the user picks."""
    return select(
        "Select a stash:",
        [(f"{entry.ref}: {entry.description}", entry.ref) for entry in stashes],
    )


def prompt_stash_action() -> str:
    """Return ``apply`` or ``drop``."""
    return select("What do you want to do with it?", [(action, action) for action in STASH_ACTIONS])
