"""Shared pytest fixtures and configuration for the opskit test suite.

Guidelines
----------
* No real external tool is ever executed; services get a
  :class:`FakeRunner` that records every call.
* Core tests must be pure — filesystem work happens under ``tmp_path``.
* Tests must not depend on OS state or the user's environment.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import pytest

from opskit.core.models import CommandResult
from opskit.exceptions import ToolNotFoundError


@dataclass
class RecordedCall:
    args: tuple[str, ...]
    mutating: bool
    capture: bool
    env: dict[str, str] | None
    stdout_path: Path | None


@dataclass
class _Response:
    prefix: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    writes: bytes | None


class FakeRunner:
    """In-memory :class:`~opskit.core.protocols.CommandRunner`.

    Responses are registered with :meth:`on` by argv prefix; the most
    recently registered matching prefix wins.  Unmatched commands
    succeed with empty output.
    """

    def __init__(self) -> None:
        self.dry_run: bool = False
        self.calls: list[RecordedCall] = []
        self.required: list[str] = []
        self.missing: set[str] = set()
        self._responses: list[_Response] = []

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        writes: bytes | None = None,
    ) -> FakeRunner:
        self._responses.append(_Response(tuple(prefix), returncode, stdout, stderr, writes))
        return self

    def require(self, tool: str) -> None:
        self.required.append(tool)
        if tool in self.missing:
            raise ToolNotFoundError(tool)

    def run(
        self,
        args: Sequence[str],
        *,
        mutating: bool = True,
        capture: bool = False,
        env: Mapping[str, str] | None = None,
        stdout_path: Path | None = None,
    ) -> CommandResult:
        argv = tuple(args)
        self.calls.append(
            RecordedCall(argv, mutating, capture, dict(env) if env else None, stdout_path)
        )
        if self.dry_run and mutating:
            return CommandResult(args=argv, returncode=0, dry_run=True)

        for response in reversed(self._responses):
            if argv[: len(response.prefix)] == response.prefix:
                if stdout_path is not None and response.writes is not None:
                    stdout_path.write_bytes(response.writes)
                return CommandResult(
                    args=argv,
                    returncode=response.returncode,
                    stdout=response.stdout,
                    stderr=response.stderr,
                )
        return CommandResult(args=argv, returncode=0)

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [call.args for call in self.calls]

    def find(self, *prefix: str) -> list[RecordedCall]:
        return [call for call in self.calls if call.args[: len(prefix)] == prefix]


class RecordingReporter:
    """:class:`~opskit.core.protocols.Reporter` that stores every line."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def success(self, message: str) -> None:
        self.records.append(("success", message))

    def warning(self, message: str) -> None:
        self.records.append(("warning", message))

    def error(self, message: str) -> None:
        self.records.append(("error", message))

    def section(self, title: str = "") -> None:
        self.records.append(("section", title))

    def messages(self, level: str) -> list[str]:
        return [message for kind, message in self.records if kind == level]

    def text(self) -> str:
        return "\n".join(message for _, message in self.records)


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ``OPSKIT_*`` variables from the developer's shell out of tests."""
    import os

    for name in list(os.environ):
        if name.startswith("OPSKIT_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _fresh_console() -> None:
    """Drop the cached Rich console so tests that hide Rich see the fallback."""
    from opskit.cli.console import reset_console

    reset_console()
