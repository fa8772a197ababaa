"""Infrastructure: the one place where external processes are spawned.

:class:`SubprocessRunner` satisfies the
:class:`~opskit.core.protocols.CommandRunner` protocol.  Output of
streamed commands is forwarded line by line to an optional callback and
to the ``opskit.runner`` logger.

Rules
-----
* Raw ``OSError`` never escapes; it is re-raised as
  :class:`~opskit.exceptions.CommandFailedError`.
* Non-zero exit status is *not* an exception; callers inspect
  :attr:`CommandResult.ok`.
* Extra environment variables reach the child process only.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from opskit.core.models import CommandResult
from opskit.exceptions import CommandFailedError
from opskit.infra.tool_detector import require_tool

_logger = logging.getLogger("opskit.runner")


class SubprocessRunner:
    """Run external commands with optional dry-run and output streaming.

    Parameters
    ----------
    dry_run:
        Skip mutating commands and only announce them.
    on_output:
        Called with every line of streamed output (without the trailing
        newline) and with every dry-run announcement.
    """

    def __init__(
        self,
        *,
        dry_run: bool = False,
        on_output: Callable[[str], None] | None = None,
    ) -> None:
        self.dry_run: bool = dry_run
        self._on_output: Callable[[str], None] | None = on_output

    def require(self, tool: str) -> None:
        require_tool(tool)

    def _emit(self, line: str) -> None:
        _logger.info(line)
        if self._on_output is not None:
            self._on_output(line)

    def run(
        self,
        args: Sequence[str],
        *,
        mutating: bool = True,
        capture: bool = False,
        env: Mapping[str, str] | None = None,
        stdout_path: Path | None = None,
    ) -> CommandResult:
        argv = tuple(str(arg) for arg in args)
        display = shlex.join(argv)

        if self.dry_run and mutating:
            self._emit(f"[dry-run] would run: {display}")
            return CommandResult(args=argv, returncode=0, dry_run=True)

        _logger.debug("Running: %s", argv[0])
        child_env = {**os.environ, **env} if env else None

        try:
            if stdout_path is not None:
                returncode, stdout, stderr = self._run_to_file(argv, child_env, stdout_path)
            elif capture:
                returncode, stdout, stderr = self._run_captured(argv, child_env)
            else:
                returncode, stdout, stderr = self._run_streamed(argv, child_env)
        except OSError as exc:
            raise CommandFailedError(
                f"Failed to start {argv[0]}: {exc}",
                args=argv,
            ) from exc

        if returncode != 0:
            _logger.debug("%s exited with status %d", argv[0], returncode)
        return CommandResult(args=argv, returncode=returncode, stdout=stdout, stderr=stderr)

    # ------------------------------------------------------------------
    # Execution modes
    # ------------------------------------------------------------------

    @staticmethod
    def _run_captured(
        argv: tuple[str, ...],
        env: dict[str, str] | None,
    ) -> tuple[int, str, str]:
        with subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            env=env,
        ) as proc:
            stdout, stderr = proc.communicate()
        return proc.returncode, stdout or "", stderr or ""

    def _run_streamed(
        self,
        argv: tuple[str, ...],
        env: dict[str, str] | None,
    ) -> tuple[int, str, str]:
        with subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
            env=env,
        ) as proc:
            assert proc.stdout is not None
            for line in proc.stdout:
                self._emit(line.rstrip("\n"))
            returncode = proc.wait()
        return returncode, "", ""

    @staticmethod
    def _run_to_file(
        argv: tuple[str, ...],
        env: dict[str, str] | None,
        path: Path,
    ) -> tuple[int, str, str]:
        with path.open("wb") as handle:
            with subprocess.Popen(
                argv,
                stdout=handle,
                stderr=subprocess.PIPE,
                env=env,
            ) as proc:
                _, err = proc.communicate()
        return proc.returncode, "", (err or b"").decode("utf-8", errors="replace")
