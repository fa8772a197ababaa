"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters and the CLI
must satisfy.  Core code depends ONLY on these protocols — never on
concrete implementations — preserving the dependency inversion
principle.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from opskit.core.models import CommandResult


class CommandRunner(Protocol):
    """Contract for external command execution backends.

    Any object implementing :meth:`run` and :meth:`require` with the
    correct signatures satisfies this protocol structurally.
    """

    dry_run: bool
    """When ``True``, mutating commands are reported but not executed."""

    def require(self, tool: str) -> None:
        """Ensure *tool* is available on ``PATH``.

        Raises
        ------
        ToolNotFoundError
            When the executable cannot be found.
        """
        ...  # pragma: no cover

    def run(
        self,
        args: Sequence[str],
        *,
        mutating: bool = True,
        capture: bool = False,
        env: Mapping[str, str] | None = None,
        stdout_path: Path | None = None,
    ) -> CommandResult:
        """Execute *args* and return its :class:`CommandResult`.

        Parameters
        ----------
        args:
            The argv to execute; ``args[0]`` is the executable.
        mutating:
            Whether the command changes state.  Mutating commands are
            skipped in dry-run mode; read-only queries always run.
        capture:
            Capture stdout/stderr instead of streaming them to the
            output sink.
        env:
            Extra environment variables for the child process only.
        stdout_path:
            Redirect standard output into this file.

        Implementations never raise on a non-zero exit status; callers
        inspect :attr:`CommandResult.ok`.  Failure to start the process
        is reported as :class:`~opskit.exceptions.CommandFailedError`.
        """
        ...  # pragma: no cover


class Reporter(Protocol):
    """Contract for user-facing status output.

    The CLI supplies a Rich-backed implementation; tests use a recorder.
    """

    def info(self, message: str) -> None: ...  # pragma: no cover

    def success(self, message: str) -> None: ...  # pragma: no cover

    def warning(self, message: str) -> None: ...  # pragma: no cover

    def error(self, message: str) -> None: ...  # pragma: no cover

    def section(self, title: str = "") -> None: ...  # pragma: no cover
