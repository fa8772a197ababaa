"""Objects shared by every command handler for one invocation."""

from __future__ import annotations

from dataclasses import dataclass

from opskit.config import Settings
from opskit.core.protocols import CommandRunner, Reporter


@dataclass(frozen=True, slots=True)
class CommandContext:
    """What a handler needs besides its parsed arguments."""

    settings: Settings
    runner: CommandRunner
    reporter: Reporter
