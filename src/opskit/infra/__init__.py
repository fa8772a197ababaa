"""Infrastructure layer — external system integration.

This layer wraps all interaction with the operating system: process
execution, PATH lookups and log files.  Every raw ``OSError`` must be
caught here and re-raised as an :class:`~opskit.exceptions.OpskitError`
subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from opskit.infra.logging_setup import setup_logging
from opskit.infra.subprocess_runner import SubprocessRunner
from opskit.infra.tool_detector import ToolStatus, detect_tool, require_tool

__all__: list[str] = [
    "SubprocessRunner",
    "ToolStatus",
    "detect_tool",
    "require_tool",
    "setup_logging",
]
