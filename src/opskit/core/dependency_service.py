"""Dependency update workflows for npm and pip projects.

The service validates the project layout, drives the package manager
through the injected :class:`~opskit.core.protocols.CommandRunner`, and
reports progress through a :class:`~opskit.core.protocols.Reporter`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from opskit.core.models import OutdatedPackage
from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import PreconditionError


class DependencyService:
    """Update npm and pip dependencies.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`CommandRunner` protocol.
    reporter:
        Sink for status lines.
    project_dir:
        Directory treated as the project root.  Defaults to the current
        working directory.
    """

    def __init__(
        self,
        runner: CommandRunner,
        reporter: Reporter,
        project_dir: Path | None = None,
    ) -> None:
        self._runner: CommandRunner = runner
        self._reporter: Reporter = reporter
        self._project_dir: Path = project_dir or Path.cwd()

    # ------------------------------------------------------------------
    # npm
    # ------------------------------------------------------------------

    def _require_npm_project(self) -> None:
        self._runner.require("npm")
        if not (self._project_dir / "package.json").is_file():
            raise PreconditionError(
                "No package.json file found in the current directory.",
                hint="Run this command in a Node.js project directory.",
            )

    def update_npm(
        self,
        *,
        dry_run: bool = False,
        list_only: bool = False,
        update_package_json: bool = False,
    ) -> list[OutdatedPackage]:
        """Update npm dependencies and return the packages still outdated.

        ``npm outdated`` exits 1 whenever something is outdated, so its
        status is never treated as a failure.
        """
        self._require_npm_project()

        if list_only:
            self._reporter.info("Listing outdated packages...")
            self._runner.run(["npm", "outdated"], mutating=False)
            return []

        command = ["npm", "update"]
        if dry_run:
            command.append("--dry-run")
            self._reporter.info("Running npm update in dry-run mode...")
        else:
            self._reporter.info("Updating npm dependencies...")

        # npm's own --dry-run already prevents changes, so the command is
        # allowed to execute even when the runner is in dry-run mode.
        ensure_ok(
            self._runner.run(command, mutating=not dry_run),
            "Failed to update dependencies!",
        )
        if dry_run:
            self._reporter.success("Dry run completed. No changes were made.")
        else:
            self._reporter.success("Dependencies updated successfully!")

        if update_package_json and not dry_run:
            self._reporter.info("Updating package.json to the latest versions...")
            ncu = self._runner.run(["npx", "npm-check-updates", "-u"])
            if ncu.ok:
                ensure_ok(
                    self._runner.run(["npm", "install"]),
                    "npm install failed after updating package.json.",
                )
                self._reporter.success("package.json updated and dependencies installed.")
            else:
                self._reporter.error("npm-check-updates failed.")

        remaining = self.outdated_packages()
        if remaining:
            self._reporter.warning(f"{len(remaining)} package(s) are still outdated:")
            for pkg in remaining:
                self._reporter.info(
                    f"  {pkg.name}: {pkg.current or '-'} -> "
                    f"{pkg.wanted or '-'} (latest {pkg.latest or '-'})"
                )
        else:
            self._reporter.success("All packages are up to date.")
        return remaining

    def outdated_packages(self) -> list[OutdatedPackage]:
        """Return the parsed output of ``npm outdated --json``."""
        result = self._runner.run(["npm", "outdated", "--json"], mutating=False, capture=True)
        return self.parse_outdated_json(result.stdout)

    @staticmethod
    def parse_outdated_json(text: str) -> list[OutdatedPackage]:
        """Parse ``npm outdated --json`` output; garbage yields an empty list."""
        if not text.strip():
            return []
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError:
            return []
        if not isinstance(data, dict):
            return []

        packages: list[OutdatedPackage] = []
        for name, info in data.items():
            # Workspaces report a list of entries per package.
            entry = info[0] if isinstance(info, list) and info else info
            if not isinstance(entry, dict):
                continue
            packages.append(
                OutdatedPackage(
                    name=str(name),
                    current=_opt_str(entry.get("current")),
                    wanted=_opt_str(entry.get("wanted")),
                    latest=_opt_str(entry.get("latest")),
                )
            )
        return sorted(packages, key=lambda pkg: pkg.name)

    def clean_npm_cache(self) -> None:
        """Force-clean the npm cache."""
        self._runner.require("npm")
        self._reporter.info("Cleaning NPM cache...")
        ensure_ok(
            self._runner.run(["npm", "cache", "clean", "--force"]),
            "Failed to clean NPM cache.",
        )
        self._reporter.success("NPM cache has been cleaned successfully.")

    def list_global_npm(self, output: Path | None = None) -> str:
        """List globally installed npm packages, optionally writing them to *output*."""
        self._runner.require("npm")
        self._reporter.info("Listing all globally installed NPM packages...")
        result = ensure_ok(
            self._runner.run(["npm", "list", "-g", "--depth=0"], mutating=False, capture=True),
            "Failed to list globally installed NPM packages.",
        )
        if output is not None:
            try:
                output.parent.mkdir(parents=True, exist_ok=True)
                output.write_text(result.stdout, encoding="utf-8")
            except OSError as exc:
                raise PreconditionError(f"Cannot write to output file {output}: {exc}") from exc
            self._reporter.success(
                f"List of globally installed NPM packages has been written to {output}"
            )
        return result.stdout

    def update_all_npm(self) -> None:
        """Run outdated → update → install → audit fix, stopping at the first failure."""
        self._require_npm_project()
        self._reporter.info("Checking for outdated packages...")
        self._runner.run(["npm", "outdated"], mutating=False)

        steps: tuple[tuple[list[str], str, str], ...] = (
            (["npm", "update"], "Updating all NPM packages...", "Failed to update NPM packages."),
            (["npm", "install"], "Installing updated packages...", "Failed to install packages."),
            (["npm", "audit", "fix"], "Running npm audit fix...", "Failed to run npm audit fix."),
        )
        for command, start, failure in steps:
            self._reporter.info(start)
            ensure_ok(self._runner.run(command), failure)
        self._reporter.success("All NPM packages have been updated to the latest version.")

    # ------------------------------------------------------------------
    # pip
    # ------------------------------------------------------------------

    def update_pip(self, requirements: Path) -> None:
        """Upgrade every package listed in *requirements*."""
        if not requirements.is_file():
            raise PreconditionError(f"Requirements file '{requirements}' does not exist.")
        self._runner.require("pip")

        self._reporter.info(f"Updating Python dependencies from {requirements}...")
        ensure_ok(
            self._runner.run(["pip", "install", "--upgrade", "-r", str(requirements)]),
            "Failed to update dependencies!",
        )
        self._reporter.success("Dependencies updated successfully!")


def _opt_str(value: object) -> str | None:
    return None if value is None else str(value)
