"""PostgreSQL backup and restore via ``pg_dump``, ``psql`` and ``pg_restore``.

The database password is handed to the child process as ``PGPASSWORD``
in its own environment; it is never exported into the opskit process.
"""

from __future__ import annotations

import gzip
import shutil
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from opskit.core.models import BackupPlan
from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import PreconditionError, ValidationError

SUPPORTED_SUFFIXES: tuple[str, ...] = (".sql", ".dump", ".sql.gz", ".dump.gz")


def backup_format(path: Path) -> tuple[str, bool]:
    """Return ``("sql" | "dump", compressed)`` for a backup file name.

    Raises
    ------
    ValidationError
        For any other extension.
    """
    name = path.name
    for suffix in SUPPORTED_SUFFIXES:
        if name.endswith(suffix):
            return suffix.split(".")[1], suffix.endswith(".gz")
    raise ValidationError(
        f"Unsupported backup file format: {path}",
        hint=f"Supported extensions: {', '.join(SUPPORTED_SUFFIXES)}",
    )


class PostgresService:
    """Dump and restore PostgreSQL databases.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`CommandRunner` protocol.
    reporter:
        Sink for status lines.
    clock:
        Returns "now"; injectable for deterministic file names.
    """

    def __init__(
        self,
        runner: CommandRunner,
        reporter: Reporter,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._runner: CommandRunner = runner
        self._reporter: Reporter = reporter
        self._clock: Callable[[], datetime] = clock

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def plan_backup(
        self,
        database: str,
        user: str,
        backup_dir: Path,
        *,
        compress: bool = False,
    ) -> BackupPlan:
        """Return where the dump of *database* will be written."""
        if not backup_dir.is_dir():
            raise PreconditionError(f"Backup directory does not exist: {backup_dir}")
        suffix = ".sql.gz" if compress else ".sql"
        path = backup_dir / f"{database}_backup_{self._clock():%Y%m%d%H%M%S}{suffix}"
        return BackupPlan(database=database, user=user, path=path, compressed=compress)

    def backup(
        self,
        database: str,
        user: str,
        password: str,
        backup_dir: Path,
        *,
        compress: bool = False,
    ) -> BackupPlan:
        """Dump *database* into *backup_dir* and return the plan used."""
        self._runner.require("pg_dump")
        plan = self.plan_backup(database, user, backup_dir, compress=compress)
        raw = plan.path.with_name(plan.path.name.removesuffix(".gz")) if compress else plan.path

        self._reporter.info(f"Backing up database {database}...")
        result = self._runner.run(
            ["pg_dump", "-U", user, database],
            env={"PGPASSWORD": password},
            stdout_path=raw,
        )
        if result.dry_run:
            return plan
        if not result.ok:
            raw.unlink(missing_ok=True)
            ensure_ok(result, "Backup failed.")

        if compress:
            try:
                with raw.open("rb") as src, gzip.open(plan.path, "wb") as dst:
                    shutil.copyfileobj(src, dst)
            except OSError as exc:
                plan.path.unlink(missing_ok=True)
                raise PreconditionError(f"Failed to compress backup: {exc}") from exc
            finally:
                raw.unlink(missing_ok=True)
            self._reporter.success(f"Database backup created and compressed at {plan.path}.")
        else:
            self._reporter.success(f"Database backup created at {plan.path}.")
        return plan

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, database: str, user: str, password: str, backup_file: Path) -> None:
        """Restore *database* from a ``.sql``/``.dump`` file, optionally gzipped."""
        if not backup_file.is_file():
            raise PreconditionError(f"Backup file not found: {backup_file}")
        kind, compressed = backup_format(backup_file)
        tool = "psql" if kind == "sql" else "pg_restore"
        self._runner.require(tool)

        if not compressed:
            self._restore_file(tool, database, user, password, backup_file)
        else:
            with tempfile.TemporaryDirectory(prefix="opskit-restore-") as tmp:
                plain = Path(tmp) / backup_file.name.removesuffix(".gz")
                self._reporter.info("Decompressing backup file...")
                try:
                    with gzip.open(backup_file, "rb") as src, plain.open("wb") as dst:
                        shutil.copyfileobj(src, dst)
                except (OSError, EOFError) as exc:
                    raise PreconditionError(f"Decompression failed: {exc}") from exc
                self._reporter.info("Decompression successful. Restoring database...")
                self._restore_file(tool, database, user, password, plain)

        self._reporter.success(f"Database restored successfully from {backup_file}.")

    def _restore_file(
        self,
        tool: str,
        database: str,
        user: str,
        password: str,
        path: Path,
    ) -> None:
        if tool == "psql":
            self._reporter.info("Restoring database from SQL dump file...")
            argv = ["psql", "-U", user, "-d", database, "-f", str(path)]
        else:
            self._reporter.info("Restoring database from custom format dump file...")
            argv = ["pg_restore", "-U", user, "-d", database, str(path)]
        ensure_ok(self._runner.run(argv, env={"PGPASSWORD": password}), "Restore failed.")
