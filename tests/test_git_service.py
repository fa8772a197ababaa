"""Tests for git workflows (core/git_service.py).

Coverage:
* Repository precondition and commit message rules.
* add/commit/push ordering and failure propagation.
* Conflict marker search and ``git grep`` parsing.
* Stash listing, validation and actions.
* Changelog rendering, writing and dry-run.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from conftest import FakeRunner, RecordingReporter
from opskit.core.git_service import GitService
from opskit.core.models import ConflictHit, StashEntry
from opskit.exceptions import CommandFailedError, PreconditionError, ValidationError


@pytest.fixture()
def repo(runner: FakeRunner) -> FakeRunner:
    runner.on("git", "rev-parse", "--is-inside-work-tree", stdout="true\n")
    return runner


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------

class TestRequireRepository:
    def test_outside_repository(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("git", "rev-parse", returncode=128, stderr="fatal: not a git repository")
        with pytest.raises(PreconditionError, match="Not in a git repository"):
            GitService(runner, reporter).require_repository()

    def test_inside_repository(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        GitService(repo, reporter).require_repository()
        assert repo.calls[0].mutating is False


class TestCommitMessage:
    @pytest.mark.parametrize("message", ["Fix login redirect", "Add a README"])
    def test_valid(self, message: str) -> None:
        GitService.validate_commit_message(message)

    @pytest.mark.parametrize("message", ["", "fix login redirect", "Short", "123456789012"])
    def test_invalid(self, message: str) -> None:
        with pytest.raises(ValidationError, match="Invalid commit message format"):
            GitService.validate_commit_message(message)


# ---------------------------------------------------------------------------
# add / commit / push
# ---------------------------------------------------------------------------

class TestAddCommitPush:
    def test_runs_in_order(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        GitService(runner, reporter).add_commit_push("Update docs")
        assert runner.commands == [
            ("git", "add", "."),
            ("git", "commit", "-m", "Update docs"),
            ("git", "push"),
        ]

    def test_blank_message(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        with pytest.raises(ValidationError):
            GitService(runner, reporter).add_commit_push("   ")
        assert runner.calls == []

    def test_commit_failure_skips_push(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        runner.on("git", "commit", returncode=1, stderr="nothing to commit")
        with pytest.raises(CommandFailedError, match="Failed to commit changes"):
            GitService(runner, reporter).add_commit_push("Update docs")
        assert runner.find("git", "push") == []


class TestValidatedCommit:
    def test_commits_staged_changes(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        repo.on("git", "diff", "--cached", "--quiet", returncode=1)

        GitService(repo, reporter).validated_commit("Refactor the parser")

        assert repo.commands[-1] == ("git", "commit", "-m", "Refactor the parser")
        assert "Commit successful!" in reporter.messages("success")

    def test_nothing_staged(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        with pytest.raises(PreconditionError, match="No changes staged"):
            GitService(repo, reporter).validated_commit("Refactor the parser")
        assert repo.find("git", "commit") == []

    def test_diff_error(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        repo.on("git", "diff", returncode=129)
        with pytest.raises(CommandFailedError) as exc_info:
            GitService(repo, reporter).validated_commit("Refactor the parser")
        assert exc_info.value.returncode == 129

    def test_message_checked_before_git(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        with pytest.raises(ValidationError):
            GitService(runner, reporter).validated_commit("oops")
        assert runner.calls == []


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

class TestConflicts:
    def test_parse_grep_output(self) -> None:
        text = "src/a.py:12:<<<<<<< HEAD\nweird line\nC:/x.txt:3:=======\n"
        assert GitService.parse_grep_output(text, "=======") == [
            ConflictHit("src/a.py", 12, "=======", "<<<<<<< HEAD"),
            ConflictHit("C:/x.txt", 3, "=======", "======="),
        ]

    def test_no_conflicts(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        repo.on("git", "grep", returncode=1)
        assert GitService(repo, reporter).find_conflicts() == []
        assert "No merge conflicts found." in reporter.messages("success")
        assert len(repo.find("git", "grep")) == 3

    def test_collects_hits(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        repo.on("git", "grep", returncode=1)
        repo.on("git", "grep", "-n", "-F", "-e", "<<<<<<< HEAD", stdout="a.txt:1:<<<<<<< HEAD\n")

        hits = GitService(repo, reporter).find_conflicts()

        assert hits == [ConflictHit("a.txt", 1, "<<<<<<< HEAD", "<<<<<<< HEAD")]
        assert "Conflict(s) found in the repository." in reporter.messages("warning")

    def test_grep_error(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        repo.on("git", "grep", returncode=2, stderr="fatal")
        with pytest.raises(CommandFailedError):
            GitService(repo, reporter).find_conflicts()


# ---------------------------------------------------------------------------
# Stashes
# ---------------------------------------------------------------------------

STASHES = "stash@{0}: WIP on main: abc123 Fix\nstash@{1}: On feature: experiment\n"


class TestStashes:
    def test_parse_stash_list(self) -> None:
        assert GitService.parse_stash_list(STASHES) == [
            StashEntry("stash@{0}", "WIP on main: abc123 Fix"),
            StashEntry("stash@{1}", "On feature: experiment"),
        ]

    def test_list_stashes(self, repo: FakeRunner, reporter: RecordingReporter) -> None:
        repo.on("git", "stash", "list", stdout=STASHES)
        assert len(GitService(repo, reporter).list_stashes()) == 2

    @pytest.mark.parametrize("action", ["apply", "drop"])
    def test_action(self, repo: FakeRunner, reporter: RecordingReporter, action: str) -> None:
        repo.on("git", "stash", "list", stdout=STASHES)
        GitService(repo, reporter).stash_action("stash@{1}", action)
        assert repo.commands[-1] == ("git", "stash", action, "stash@{1}")

    def test_invalid_action(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        with pytest.raises(ValidationError, match="Invalid action"):
            GitService(runner, reporter).stash_action("stash@{0}", "pop", [])

    def test_unknown_ref(self, runner: FakeRunner, reporter: RecordingReporter) -> None:
        stashes = GitService.parse_stash_list(STASHES)
        with pytest.raises(ValidationError, match="Invalid stash index"):
            GitService(runner, reporter).stash_action("stash@{9}", "apply", stashes)
        assert runner.calls == []


# ---------------------------------------------------------------------------
# Changelog
# ---------------------------------------------------------------------------

class TestChangelog:
    NOW = datetime(2024, 3, 4, 5, 6, 7)

    def test_writes_changelog(
        self, repo: FakeRunner, reporter: RecordingReporter, tmp_path: Path,
    ) -> None:
        repo.on("git", "log", stdout="- abc123 Initial commit (Ann, 2 days ago)\n")
        out = tmp_path / "CHANGELOG.md"

        content = GitService(repo, reporter).generate_changelog(
            out, project_name="demo", now=self.NOW,
        )

        assert content == (
            "# Changelog for demo\n"
            "Generated on 2024-03-04 05:06:07\n\n"
            "- abc123 Initial commit (Ann, 2 days ago)\n"
        )
        assert out.read_text(encoding="utf-8") == content
        [log] = repo.find("git", "log")
        assert log.args[-1] == "--pretty=format:- %h %s (%an, %ar)"

    def test_dry_run_does_not_write(
        self, repo: FakeRunner, reporter: RecordingReporter, tmp_path: Path,
    ) -> None:
        repo.dry_run = True
        out = tmp_path / "CHANGELOG.md"
        GitService(repo, reporter).generate_changelog(out, project_name="demo", now=self.NOW)
        assert not out.exists()

    def test_log_failure(
        self, repo: FakeRunner, reporter: RecordingReporter, tmp_path: Path,
    ) -> None:
        repo.on("git", "log", returncode=128, stderr="does not have any commits")
        with pytest.raises(CommandFailedError, match="does not have any commits"):
            GitService(repo, reporter).generate_changelog(tmp_path / "c.md")
