"""Helpers for turning :class:`CommandResult` failures into domain errors."""

from __future__ import annotations

from opskit.core.models import CommandResult
from opskit.exceptions import CommandFailedError


def ensure_ok(result: CommandResult, message: str, *, hint: str | None = None) -> CommandResult:
    """Return *result* unchanged, or raise :class:`CommandFailedError`.

    The captured stderr (when present) is appended to the message so the
    user sees why the wrapped tool failed.
    """
    if result.ok:
        return result
    detail = result.stderr.strip()
    full = f"{message}\n{detail}" if detail else message
    raise CommandFailedError(
        full,
        args=result.args,
        returncode=result.returncode,
        hint=hint,
    )
