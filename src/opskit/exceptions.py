"""Custom exception hierarchy for opskit.

All exceptions that cross layer boundaries must inherit from
:class:`OpskitError`.  Raw ``OSError``/``subprocess`` failures must
never propagate beyond the infrastructure layer — they are caught there
and re-raised as a typed subclass defined here.

Hierarchy
---------
OpskitError
├── ToolNotFoundError
├── PreconditionError
├── CommandFailedError
├── ValidationError
├── KubeconfigError
└── EnvironmentError
"""

from __future__ import annotations

from collections.abc import Sequence


class OpskitError(Exception):
    """Base exception for all opskit errors.

    Every user-visible error condition maps to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Environment / tooling -------------------------------------------------

class ToolNotFoundError(OpskitError):
    """Raised when a wrapped executable cannot be located on PATH."""

    def __init__(self, tool: str, *, hint: str | None = None) -> None:
        super().__init__(
            f"{tool} is not installed or not available in the PATH.",
            hint=hint,
        )
        self.tool: str = tool


class EnvironmentError(OpskitError):
    """Raised when an optional Python dependency is not available."""


# --- Preconditions ---------------------------------------------------------

class PreconditionError(OpskitError):
    """Raised when a required file, directory or repository state is missing."""


class ValidationError(OpskitError):
    """Raised when user input fails validation (commit message, selection…)."""


# --- External commands -----------------------------------------------------

class CommandFailedError(OpskitError):
    """Raised when a wrapped command exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        args: Sequence[str] = (),
        returncode: int | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.command: tuple[str, ...] = tuple(args)
        self.returncode: int | None = returncode


# --- Kubeconfig handling ---------------------------------------------------

class KubeconfigError(OpskitError):
    """Raised when a kubeconfig document is unreadable or structurally invalid."""
