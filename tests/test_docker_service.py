"""Tests for docker housekeeping (core/docker_service.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeRunner, RecordingReporter
from opskit.core.docker_service import INFO_SECTIONS, DockerService
from opskit.exceptions import CommandFailedError, PreconditionError


class TestRequireDaemon:
    def test_daemon_down(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("docker", "info", returncode=1, stderr="Cannot connect")
        with pytest.raises(PreconditionError, match="Docker is not running"):
            DockerService(runner, reporter).require_daemon()

    def test_daemon_up(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        DockerService(runner, reporter).require_daemon()
        assert runner.required == ["docker"]


class TestCleanup:
    def test_removes_everything_then_prunes(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        runner.on("docker", "ps", "-q", stdout="c1\n")
        runner.on("docker", "ps", "-aq", stdout="c1\nc2\n")
        runner.on("docker", "images", "-q", stdout="i1\ni1\ni2\n")
        runner.on("docker", "volume", "ls", "-q", stdout="")
        runner.on("docker", "network", "ls", "-q", stdout="n1\n")

        DockerService(runner, reporter).cleanup()

        mutations = [call.args for call in runner.calls if call.mutating]
        assert mutations == [
            ("docker", "stop", "c1"),
            ("docker", "rm", "c1", "c2"),
            ("docker", "rmi", "-f", "i1", "i2"),
            ("docker", "network", "rm", "n1"),
            ("docker", "system", "prune", "-a", "--volumes", "-f"),
        ]
        assert "Docker cleanup complete." in reporter.messages("success")

    def test_removal_failure_is_warning(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        runner.on("docker", "network", "ls", "-q", stdout="bridge\n")
        runner.on("docker", "network", "rm", returncode=1, stderr="pre-defined network")

        DockerService(runner, reporter).cleanup()

        assert "Removing all networks finished with errors." in reporter.messages("warning")
        assert runner.commands[-1][:3] == ("docker", "system", "prune")

    def test_prune_failure_raises(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("docker", "system", "prune", returncode=1)
        with pytest.raises(CommandFailedError, match="prune failed"):
            DockerService(runner, reporter).cleanup()

    def test_dry_run_still_lists(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.dry_run = True
        runner.on("docker", "ps", "-q", stdout="c1\n")

        DockerService(runner, reporter).cleanup()

        assert runner.find("docker", "ps", "-q")[0].mutating is False
        assert all(call.mutating for call in runner.find("docker", "stop"))


class TestInfo:
    def test_streams_sections(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        DockerService(runner, reporter).info()

        titles = reporter.messages("section")
        assert titles == [title for title, _ in INFO_SECTIONS]
        assert all(call.capture is False for call in runner.calls[1:])

    def test_writes_file(
        self, runner: FakeRunner, reporter: RecordingReporter, tmp_path: Path,
    ) -> None:
        runner.on("docker", "--version", stdout="Docker version 26.1.0\n")
        out = tmp_path / "docker-info.txt"

        DockerService(runner, reporter).info(out)

        text = out.read_text(encoding="utf-8")
        assert text.startswith("Docker Containers:\n")
        assert "Docker Version:\nDocker version 26.1.0\n" in text
        assert reporter.messages("section") == []


class TestStopAll:
    def test_running_containers(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("docker", "ps", "-q", stdout="a\nb\n")
        assert DockerService(runner, reporter).running_containers() == ["a", "b"]

    def test_stop(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        DockerService(runner, reporter).stop_containers(["a", "b"])
        assert runner.commands == [("docker", "stop", "a", "b")]

    def test_nothing_running(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        DockerService(runner, reporter).stop_containers([])
        assert runner.calls == []
        assert "No running containers found." in reporter.messages("info")
