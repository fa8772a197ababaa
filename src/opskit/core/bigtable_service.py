"""Cloud Bigtable management through ``gcloud`` and ``cbt``.

Instances, clusters and backups are managed with ``gcloud bigtable``;
tables go through the ``cbt`` tool.  Confirmation of destructive
commands is the caller's job: the service only executes.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from opskit.core.models import BigtableTarget
from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import PreconditionError, ToolNotFoundError, ValidationError

DEFAULT_ZONE: str = "us-central1-a"
COLUMN_FAMILY: str = "cf1"
BACKUP_RETENTION: timedelta = timedelta(days=30)
REQUIRED_APIS: tuple[str, ...] = ("bigtable.googleapis.com", "bigtableadmin.googleapis.com")

REQUIRED_IDS: dict[str, tuple[str, ...]] = {
    "create-instance": ("instance",),
    "list-instances": (),
    "get-instance": ("instance",),
    "update-instance": ("instance",),
    "delete-instance": ("instance",),
    "create-cluster": ("instance", "cluster"),
    "list-clusters": ("instance",),
    "get-cluster": ("instance", "cluster"),
    "update-cluster": ("instance", "cluster"),
    "delete-cluster": ("instance", "cluster"),
    "create-table": ("instance", "table"),
    "list-tables": ("instance",),
    "get-table": ("instance", "table"),
    "delete-table": ("instance", "table"),
    "create-backup": ("instance", "cluster", "table", "backup"),
    "list-backups": ("instance", "cluster"),
    "restore-backup": ("instance", "cluster", "table", "backup"),
    "delete-backup": ("instance", "cluster", "backup"),
}
"""Identifiers each command needs, in the order they are reported."""

COMMANDS: tuple[str, ...] = tuple(REQUIRED_IDS)

DESTRUCTIVE_COMMANDS: dict[str, str] = {
    "delete-instance": "This will permanently delete the instance and all its data",
    "delete-cluster": "This will permanently delete the cluster",
    "delete-table": "This will permanently delete the table and all its data",
    "delete-backup": "This will permanently delete the backup",
}
"""Commands that need confirmation, mapped to their warning."""

_ID_LABELS: dict[str, str] = {
    "instance": "Instance ID",
    "cluster": "Cluster ID",
    "table": "Table ID",
    "backup": "Backup ID",
}


def _join_labels(labels: list[str]) -> str:
    if len(labels) <= 2:
        return " and ".join(labels)
    return f"{', '.join(labels[:-1])}, and {labels[-1]}"


class BigtableService:
    """Run Bigtable admin commands for one project.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`CommandRunner` protocol.
    reporter:
        Sink for status lines.
    default_zone:
        Zone used by ``create-cluster`` when none is given.
    clock:
        Returns "now" in UTC; injectable for deterministic names.
    """

    def __init__(
        self,
        runner: CommandRunner,
        reporter: Reporter,
        *,
        default_zone: str = DEFAULT_ZONE,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._runner: CommandRunner = runner
        self._reporter: Reporter = reporter
        self._default_zone: str = default_zone
        self._clock: Callable[[], datetime] = clock

    # ------------------------------------------------------------------
    # Validation (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def validate(command: str, target: BigtableTarget) -> None:
        """Raise :class:`ValidationError` for unknown commands or missing IDs."""
        if command not in REQUIRED_IDS:
            raise ValidationError(
                f"Unknown command: {command}",
                hint=f"Valid commands: {', '.join(COMMANDS)}",
            )
        missing = [
            _ID_LABELS[field]
            for field in REQUIRED_IDS[command]
            if not getattr(target, field)
        ]
        if missing:
            noun = "is" if len(missing) == 1 else "are"
            raise ValidationError(f"{_join_labels(missing)} {noun} required for {command}")

    # ------------------------------------------------------------------
    # Session setup
    # ------------------------------------------------------------------

    def check_auth(self) -> None:
        """Require an active gcloud account."""
        self._runner.require("gcloud")
        result = self._runner.run(
            ["gcloud", "auth", "list", "--filter=status:ACTIVE", "--format=value(account)"],
            mutating=False,
            capture=True,
        )
        if not result.ok or "@" not in result.stdout:
            raise PreconditionError(
                "Not authenticated with gcloud.",
                hint="Run 'gcloud auth login'.",
            )

    def resolve_project(self, project: str | None) -> str:
        """Return *project*, falling back to gcloud's configured project."""
        if not project:
            result = self._runner.run(
                ["gcloud", "config", "get-value", "project"],
                mutating=False,
                capture=True,
            )
            project = result.stdout.strip() if result.ok else ""
        if not project or project == "(unset)":
            raise PreconditionError(
                "No project set.",
                hint="Use -p or run 'gcloud config set project PROJECT_ID'.",
            )
        self._reporter.info(f"Using project: {project}")
        ensure_ok(
            self._runner.run(["gcloud", "config", "set", "project", project], capture=True),
            f"Failed to set the active project to '{project}'.",
            hint="Check the project ID and your access with: gcloud projects describe PROJECT_ID",
        )
        return project

    def prepare(self, command: str, target: BigtableTarget) -> BigtableTarget:
        """Validate, authenticate and pin the project.

        Returns
        -------
        BigtableTarget
            *target* with ``project`` resolved.
        """
        self.validate(command, target)
        self.check_auth()
        project = self.resolve_project(target.project)
        return dataclasses.replace(target, project=project)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def execute(self, command: str, target: BigtableTarget) -> str | None:
        """Run *command* against an already prepared *target*.

        Returns
        -------
        str | None
            The restored table name for ``restore-backup``, else ``None``.
        """
        self.validate(command, target)
        handler = getattr(self, "_" + command.replace("-", "_"))
        return handler(target)

    def _gcloud(self, *args: str, project: str | None, mutating: bool = True) -> None:
        command = ["gcloud", "bigtable", *args, f"--project={project}"]
        ensure_ok(self._runner.run(command, mutating=mutating), f"gcloud bigtable {args[0]} {args[1]} failed.")

    def _cbt(self, target: BigtableTarget, *args: str, mutating: bool = True) -> None:
        command = ["cbt", f"-project={target.project}", f"-instance={target.instance}", *args]
        ensure_ok(self._runner.run(command, mutating=mutating), f"cbt {args[0]} failed.")

    def _require_cbt(self) -> None:
        try:
            self._runner.require("cbt")
        except ToolNotFoundError as exc:
            raise ToolNotFoundError("cbt", hint="Install with: gcloud components install cbt") from exc

    # -- instances -------------------------------------------------------

    def _create_instance(self, target: BigtableTarget) -> None:
        self._reporter.info("Enabling required APIs...")
        for api in REQUIRED_APIS:
            self._reporter.info(f"Enabling {api}...")
            ensure_ok(
                self._runner.run(
                    ["gcloud", "services", "enable", api, f"--project={target.project}"],
                    capture=True,
                ),
                f"Failed to enable {api}.",
            )
        self._reporter.info("Creating Bigtable instance...")
        self._gcloud(
            "instances", "create", str(target.instance),
            f"--display-name={target.instance}",
            project=target.project,
        )
        self._reporter.success("Bigtable instance created successfully")

    def _list_instances(self, target: BigtableTarget) -> None:
        self._reporter.section("Bigtable Instances")
        self._gcloud("instances", "list", project=target.project, mutating=False)
        self._reporter.section("End of Bigtable Instances")

    def _get_instance(self, target: BigtableTarget) -> None:
        self._reporter.section(f"Bigtable Instance: {target.instance}")
        self._gcloud("instances", "describe", str(target.instance), project=target.project, mutating=False)
        self._reporter.section("End of Bigtable Instance Details")

    def _update_instance(self, target: BigtableTarget) -> None:
        self._reporter.info("Updating Bigtable instance...")
        self._gcloud(
            "instances", "update", str(target.instance),
            f"--display-name={target.instance}-updated",
            project=target.project,
        )
        self._reporter.success("Bigtable instance updated successfully")

    def _delete_instance(self, target: BigtableTarget) -> None:
        self._reporter.info("Deleting Bigtable instance...")
        self._gcloud("instances", "delete", str(target.instance), "--quiet", project=target.project)
        self._reporter.success("Bigtable instance deleted successfully")

    # -- clusters --------------------------------------------------------

    def _create_cluster(self, target: BigtableTarget) -> None:
        zone = target.zone
        if not zone:
            zone = self._default_zone
            self._reporter.info(f"Using default zone: {zone}")
        self._reporter.info("Creating Bigtable cluster...")
        self._gcloud(
            "clusters", "create", str(target.cluster),
            f"--instance={target.instance}",
            f"--zone={zone}",
            "--num-nodes=1",
            project=target.project,
        )
        self._reporter.success("Bigtable cluster created successfully")

    def _list_clusters(self, target: BigtableTarget) -> None:
        self._reporter.section(f"Bigtable Clusters in {target.instance}")
        self._gcloud(
            "clusters", "list", f"--instances={target.instance}",
            project=target.project, mutating=False,
        )
        self._reporter.section("End of Bigtable Clusters")

    def _get_cluster(self, target: BigtableTarget) -> None:
        self._reporter.section(f"Bigtable Cluster: {target.cluster}")
        self._gcloud(
            "clusters", "describe", str(target.cluster), f"--instance={target.instance}",
            project=target.project, mutating=False,
        )
        self._reporter.section("End of Bigtable Cluster Details")

    def _update_cluster(self, target: BigtableTarget) -> None:
        self._reporter.info("Updating Bigtable cluster...")
        self._gcloud(
            "clusters", "update", str(target.cluster),
            f"--instance={target.instance}",
            "--num-nodes=2",
            project=target.project,
        )
        self._reporter.success("Bigtable cluster updated successfully")

    def _delete_cluster(self, target: BigtableTarget) -> None:
        self._reporter.info("Deleting Bigtable cluster...")
        self._gcloud(
            "clusters", "delete", str(target.cluster), f"--instance={target.instance}", "--quiet",
            project=target.project,
        )
        self._reporter.success("Bigtable cluster deleted successfully")

    # -- tables (cbt) ----------------------------------------------------

    def _create_table(self, target: BigtableTarget) -> None:
        self._require_cbt()
        self._reporter.info("Creating Bigtable table...")
        self._cbt(target, "createtable", str(target.table))
        self._cbt(target, "createfamily", str(target.table), COLUMN_FAMILY)
        self._reporter.success("Bigtable table created successfully")

    def _list_tables(self, target: BigtableTarget) -> None:
        self._require_cbt()
        self._reporter.section(f"Bigtable Tables in {target.instance}")
        self._cbt(target, "ls", mutating=False)
        self._reporter.section("End of Bigtable Tables")

    def _get_table(self, target: BigtableTarget) -> None:
        self._require_cbt()
        self._reporter.section(f"Bigtable Table: {target.table}")
        self._cbt(target, "ls", str(target.table), mutating=False)
        self._reporter.section("End of Bigtable Table Details")

    def _delete_table(self, target: BigtableTarget) -> None:
        self._require_cbt()
        self._reporter.info("Deleting Bigtable table...")
        self._cbt(target, "deletetable", str(target.table))
        self._reporter.success("Bigtable table deleted successfully")

    # -- backups ---------------------------------------------------------

    def backup_expiry(self) -> str:
        """Return the ISO-8601 expiry used for new backups."""
        return (self._clock() + BACKUP_RETENTION).isoformat(timespec="seconds")

    def restored_table_name(self, table: str) -> str:
        """Return the destination name used by ``restore-backup``."""
        return f"{table}-restored-{self._clock():%Y%m%d%H%M%S}"

    def _create_backup(self, target: BigtableTarget) -> None:
        self._reporter.info("Creating Bigtable table backup...")
        self._gcloud(
            "backups", "create", str(target.backup),
            f"--source-table={target.table}",
            f"--source-instance={target.instance}",
            f"--cluster={target.cluster}",
            f"--expire-time={self.backup_expiry()}",
            project=target.project,
        )
        self._reporter.success("Bigtable backup created successfully")

    def _list_backups(self, target: BigtableTarget) -> None:
        self._reporter.section(f"Bigtable Backups in {target.cluster}")
        self._gcloud(
            "backups", "list",
            f"--instance={target.instance}",
            f"--cluster={target.cluster}",
            project=target.project, mutating=False,
        )
        self._reporter.section("End of Bigtable Backups")

    def _restore_backup(self, target: BigtableTarget) -> str:
        destination = self.restored_table_name(str(target.table))
        self._reporter.info("Restoring Bigtable table from backup...")
        self._gcloud(
            "backups", "restore", str(target.backup),
            f"--source-instance={target.instance}",
            f"--source-cluster={target.cluster}",
            f"--destination-table={destination}",
            f"--destination-instance={target.instance}",
            project=target.project,
        )
        self._reporter.success(f"Table restored as {destination}")
        return destination

    def _delete_backup(self, target: BigtableTarget) -> None:
        self._reporter.info("Deleting Bigtable backup...")
        self._gcloud(
            "backups", "delete", str(target.backup),
            f"--instance={target.instance}",
            f"--cluster={target.cluster}",
            "--quiet",
            project=target.project,
        )
        self._reporter.success("Bigtable backup deleted successfully")
