"""Git workflow helpers: commit, push, conflict search, stashes, changelog.

All git invocations go through the injected
:class:`~opskit.core.protocols.CommandRunner`.  Parsing of git's text
output is done here with small, deterministic helpers.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from opskit.core.models import ConflictHit, StashEntry
from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import CommandFailedError, PreconditionError, ValidationError

CONFLICT_MARKERS: tuple[str, ...] = ("<<<<<<< HEAD", "=======", ">>>>>>> ")
STASH_ACTIONS: tuple[str, ...] = ("apply", "drop")
MIN_COMMIT_MESSAGE_LENGTH: int = 10
CHANGELOG_FORMAT: str = "- %h %s (%an, %ar)"

_GREP_LINE = re.compile(r"^(?P<path>.*?):(?P<line>\d+):(?P<text>.*)$")


class GitService:
    """Drive common git workflows.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`CommandRunner` protocol.
    reporter:
        Sink for status lines.
    """

    def __init__(self, runner: CommandRunner, reporter: Reporter) -> None:
        self._runner: CommandRunner = runner
        self._reporter: Reporter = reporter

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def require_repository(self) -> None:
        """Raise :class:`PreconditionError` unless the cwd is inside a work tree."""
        self._runner.require("git")
        result = self._runner.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            mutating=False,
            capture=True,
        )
        if not result.ok or result.stdout.strip() != "true":
            raise PreconditionError(
                "Not in a git repository.",
                hint="Run this command inside a git repository.",
            )

    # ------------------------------------------------------------------
    # Commit message rules (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def validate_commit_message(message: str) -> None:
        """Require a capitalised message of at least ten characters."""
        if not message or not ("A" <= message[0] <= "Z") or len(message) < MIN_COMMIT_MESSAGE_LENGTH:
            raise ValidationError(
                "Invalid commit message format!",
                hint=(
                    "Must start with a capital letter and be at least "
                    f"{MIN_COMMIT_MESSAGE_LENGTH} characters long."
                ),
            )

    # ------------------------------------------------------------------
    # add / commit / push
    # ------------------------------------------------------------------

    def add_commit_push(self, message: str) -> None:
        """Stage everything, commit with *message* and push."""
        if not message.strip():
            raise ValidationError("A commit message is required.")
        self._runner.require("git")

        self._reporter.info("Starting Git operations...")
        ensure_ok(self._runner.run(["git", "add", "."]), "Failed to add changes.")
        self._reporter.info("Changes added successfully.")
        ensure_ok(self._runner.run(["git", "commit", "-m", message]), "Failed to commit changes.")
        self._reporter.info("Changes committed successfully.")
        ensure_ok(self._runner.run(["git", "push"]), "Failed to push changes.")
        self._reporter.info("Changes pushed successfully.")
        self._reporter.success("Git operations completed successfully.")

    def validated_commit(self, message: str) -> None:
        """Commit staged changes after validating *message*."""
        self.validate_commit_message(message)
        self.require_repository()

        self._reporter.info("Validating staged changes...")
        staged = self._runner.run(["git", "diff", "--cached", "--quiet"], mutating=False)
        if staged.returncode == 0:
            raise PreconditionError(
                "No changes staged for commit!",
                hint="Stage changes with 'git add' first.",
            )
        if staged.returncode != 1:
            raise CommandFailedError(
                "Could not inspect staged changes.",
                args=staged.args,
                returncode=staged.returncode,
            )

        self._reporter.info(f"Committing changes with message: {message}")
        ensure_ok(self._runner.run(["git", "commit", "-m", message]), "Failed to commit changes.")
        self._reporter.success("Commit successful!")

    # ------------------------------------------------------------------
    # Conflict markers
    # ------------------------------------------------------------------

    def find_conflicts(self) -> list[ConflictHit]:
        """Search tracked files for merge conflict markers."""
        self.require_repository()
        self._reporter.info("Searching for merge conflicts in the repository...")

        hits: list[ConflictHit] = []
        for marker in CONFLICT_MARKERS:
            result = self._runner.run(
                ["git", "grep", "-n", "-F", "-e", marker],
                mutating=False,
                capture=True,
            )
            # git grep exits 1 when nothing matched.
            if result.returncode == 1:
                continue
            ensure_ok(result, f"git grep failed while searching for '{marker}'.")
            marker_hits = self.parse_grep_output(result.stdout, marker)
            if marker_hits:
                self._reporter.warning(f"Files with conflict marker '{marker.strip()}':")
                for hit in marker_hits:
                    self._reporter.info(f"{hit.path}:{hit.line}:{hit.text}")
            hits.extend(marker_hits)

        if hits:
            self._reporter.warning("Conflict(s) found in the repository.")
        else:
            self._reporter.success("No merge conflicts found.")
        return hits

    @staticmethod
    def parse_grep_output(text: str, marker: str) -> list[ConflictHit]:
        """Parse ``git grep -n`` output into :class:`ConflictHit` rows."""
        hits: list[ConflictHit] = []
        for raw in text.splitlines():
            match = _GREP_LINE.match(raw)
            if match is None:
                continue
            hits.append(
                ConflictHit(
                    path=match["path"],
                    line=int(match["line"]),
                    marker=marker,
                    text=match["text"],
                )
            )
        return hits

    # ------------------------------------------------------------------
    # Stashes
    # ------------------------------------------------------------------

    def list_stashes(self) -> list[StashEntry]:
        """Return the repository's stashes, newest first."""
        self.require_repository()
        result = ensure_ok(
            self._runner.run(["git", "stash", "list"], mutating=False, capture=True),
            "Failed to list stashes.",
        )
        return self.parse_stash_list(result.stdout)

    @staticmethod
    def parse_stash_list(text: str) -> list[StashEntry]:
        """Parse ``git stash list`` output."""
        entries: list[StashEntry] = []
        for raw in text.splitlines():
            if not raw.strip():
                continue
            ref, _, description = raw.partition(": ")
            entries.append(StashEntry(ref=ref.strip(), description=description.strip()))
        return entries

    def stash_action(self, ref: str, action: str, stashes: list[StashEntry] | None = None) -> None:
        """Apply or drop the stash *ref*."""
        if action not in STASH_ACTIONS:
            raise ValidationError(
                f"Invalid action: {action}.",
                hint="Allowed actions are 'apply' or 'drop'.",
            )
        known = stashes if stashes is not None else self.list_stashes()
        if ref not in {entry.ref for entry in known}:
            raise ValidationError(f"Invalid stash index {ref}")

        verb = "Applying" if action == "apply" else "Dropping"
        past = "applied" if action == "apply" else "dropped"
        self._reporter.info(f"{verb} stash {ref}...")
        ensure_ok(
            self._runner.run(["git", "stash", action, ref]),
            f"Failed to {action} stash {ref}.",
        )
        self._reporter.success(f"Stash {ref} {past} successfully.")

    # ------------------------------------------------------------------
    # Changelog
    # ------------------------------------------------------------------

    def generate_changelog(
        self,
        output: Path,
        *,
        project_name: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """Write a changelog built from ``git log`` to *output* and return it."""
        self.require_repository()
        project = project_name or Path.cwd().name
        stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

        self._reporter.info(f"Generating changelog for {project}...")
        result = ensure_ok(
            self._runner.run(
                ["git", "log", f"--pretty=format:{CHANGELOG_FORMAT}"],
                mutating=False,
                capture=True,
            ),
            "Failed to generate changelog.",
        )
        content = f"# Changelog for {project}\nGenerated on {stamp}\n\n{result.stdout.rstrip()}\n"

        if self._runner.dry_run:
            self._reporter.info(f"[dry-run] would write changelog to {output}")
            return content

        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise PreconditionError(f"Cannot write to output file {output}: {exc}") from exc
        self._reporter.success(f"Changelog saved to {output}")
        return content
