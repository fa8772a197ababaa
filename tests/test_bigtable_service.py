"""Tests for Bigtable management (core/bigtable_service.py)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import FakeRunner, RecordingReporter
from opskit.core.bigtable_service import COMMANDS, DESTRUCTIVE_COMMANDS, BigtableService
from opskit.core.models import BigtableTarget
from opskit.exceptions import CommandFailedError, PreconditionError, ToolNotFoundError, ValidationError

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

FULL = BigtableTarget(
    project="demo-proj",
    instance="inst",
    cluster="clus",
    table="events",
    backup="bk1",
)


def _service(runner: FakeRunner, reporter: RecordingReporter) -> BigtableService:
    return BigtableService(runner, reporter, default_zone="europe-west1-b", clock=lambda: NOW)


@pytest.fixture()
def gcloud(runner: FakeRunner) -> FakeRunner:
    runner.on("gcloud", "auth", "list", stdout="dev@example.com\n")
    runner.on("gcloud", "config", "get-value", "project", stdout="configured-proj\n")
    return runner


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidate:
    def test_eighteen_commands(self) -> None:
        assert len(COMMANDS) == 18
        assert set(DESTRUCTIVE_COMMANDS) <= set(COMMANDS)

    def test_unknown_command(self) -> None:
        with pytest.raises(ValidationError, match="Unknown command: explode"):
            BigtableService.validate("explode", FULL)

    def test_list_instances_needs_nothing(self) -> None:
        BigtableService.validate("list-instances", BigtableTarget())

    @pytest.mark.parametrize(
        ("command", "target", "message"),
        [
            ("get-instance", BigtableTarget(), "Instance ID is required for get-instance"),
            (
                "create-table",
                BigtableTarget(),
                "Instance ID and Table ID are required for create-table",
            ),
            (
                "create-backup",
                BigtableTarget(instance="i"),
                "Cluster ID, Table ID, and Backup ID are required for create-backup",
            ),
        ],
    )
    def test_missing_ids(self, command: str, target: BigtableTarget, message: str) -> None:
        with pytest.raises(ValidationError, match=message):
            BigtableService.validate(command, target)


# ---------------------------------------------------------------------------
# Session setup
# ---------------------------------------------------------------------------

class TestPrepare:
    def test_not_authenticated(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("gcloud", "auth", "list", stdout="")
        with pytest.raises(PreconditionError, match="Not authenticated"):
            _service(runner, reporter).prepare("list-instances", BigtableTarget())

    def test_missing_gcloud(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.missing.add("gcloud")
        with pytest.raises(ToolNotFoundError):
            _service(runner, reporter).check_auth()

    def test_validation_runs_first(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        with pytest.raises(ValidationError):
            _service(runner, reporter).prepare("get-table", BigtableTarget(instance="i"))
        assert runner.calls == []

    def test_explicit_project_is_pinned(self, gcloud: FakeRunner, reporter: RecordingReporter) -> None:
        target = _service(gcloud, reporter).prepare("list-instances", BigtableTarget(project="p1"))

        assert target.project == "p1"
        assert ("gcloud", "config", "set", "project", "p1") in gcloud.commands
        assert gcloud.find("gcloud", "config", "get-value") == []

    def test_failure_to_pin_project_aborts(
        self, gcloud: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        gcloud.on("gcloud", "config", "set", "project", returncode=1, stderr="not found")

        with pytest.raises(CommandFailedError, match="Failed to set the active project to 'p1'"):
            _service(gcloud, reporter).prepare("list-instances", BigtableTarget(project="p1"))

        assert gcloud.find("gcloud", "bigtable") == []

    def test_falls_back_to_configured_project(
        self, gcloud: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        target = _service(gcloud, reporter).prepare("list-instances", BigtableTarget())
        assert target.project == "configured-proj"
        assert "Using project: configured-proj" in reporter.messages("info")

    def test_unset_project(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("gcloud", "auth", "list", stdout="dev@example.com\n")
        runner.on("gcloud", "config", "get-value", stdout="(unset)\n")
        with pytest.raises(PreconditionError, match="No project set"):
            _service(runner, reporter).prepare("list-instances", BigtableTarget())


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class TestExecute:
    def test_create_instance_enables_apis(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        _service(runner, reporter).execute("create-instance", FULL)
        assert runner.commands == [
            ("gcloud", "services", "enable", "bigtable.googleapis.com", "--project=demo-proj"),
            ("gcloud", "services", "enable", "bigtableadmin.googleapis.com", "--project=demo-proj"),
            (
                "gcloud", "bigtable", "instances", "create", "inst",
                "--display-name=inst", "--project=demo-proj",
            ),
        ]

    def test_list_is_read_only(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        _service(runner, reporter).execute("list-clusters", FULL)
        [call] = runner.calls
        assert call.args == (
            "gcloud", "bigtable", "clusters", "list", "--instances=inst", "--project=demo-proj",
        )
        assert call.mutating is False

    def test_create_cluster_uses_default_zone(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        _service(runner, reporter).execute("create-cluster", FULL)
        assert "--zone=europe-west1-b" in runner.commands[0]
        assert "--num-nodes=1" in runner.commands[0]

    def test_create_cluster_explicit_zone(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        target = BigtableTarget(project="p", instance="i", cluster="c", zone="asia-east1-a")
        _service(runner, reporter).execute("create-cluster", target)
        assert "--zone=asia-east1-a" in runner.commands[0]

    def test_deletes_are_quiet(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        _service(runner, reporter).execute("delete-instance", FULL)
        assert runner.commands == [
            ("gcloud", "bigtable", "instances", "delete", "inst", "--quiet", "--project=demo-proj"),
        ]

    def test_create_table_adds_column_family(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        _service(runner, reporter).execute("create-table", FULL)
        assert runner.commands == [
            ("cbt", "-project=demo-proj", "-instance=inst", "createtable", "events"),
            ("cbt", "-project=demo-proj", "-instance=inst", "createfamily", "events", "cf1"),
        ]

    def test_missing_cbt_has_install_hint(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        runner.missing.add("cbt")
        with pytest.raises(ToolNotFoundError) as exc_info:
            _service(runner, reporter).execute("list-tables", FULL)
        assert exc_info.value.hint == "Install with: gcloud components install cbt"

    def test_create_backup_expires_in_30_days(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        _service(runner, reporter).execute("create-backup", FULL)
        assert "--expire-time=2024-07-01T12:00:00+00:00" in runner.commands[0]

    def test_restore_backup_returns_destination(
        self, runner: FakeRunner, reporter: RecordingReporter,
    ) -> None:
        destination = _service(runner, reporter).execute("restore-backup", FULL)

        assert destination == "events-restored-20240601120000"
        assert f"--destination-table={destination}" in runner.commands[0]
        assert "--source-cluster=clus" in runner.commands[0]

    def test_failure_raises(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("gcloud", "bigtable", returncode=1, stderr="PERMISSION_DENIED")
        with pytest.raises(CommandFailedError, match="PERMISSION_DENIED"):
            _service(runner, reporter).execute("update-cluster", FULL)

    def test_dry_run_skips_mutations(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.dry_run = True
        _service(runner, reporter).execute("delete-backup", FULL)
        [call] = runner.calls
        assert call.mutating is True
        assert "Bigtable backup deleted successfully" in reporter.messages("success")
