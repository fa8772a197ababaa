"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit — command completed, or the user declined a confirmation."""

GENERAL_ERROR: int = 1
"""A known OpskitError was caught, or a check such as ``git conflicts --strict`` failed."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""
