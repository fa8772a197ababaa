"""Tests for the frozen domain models (core/models.py)."""

from __future__ import annotations

import dataclasses

import pytest

from opskit.core.models import (
    BigtableTarget,
    CommandResult,
    KubeconfigReport,
    StashEntry,
)


class TestCommandResult:
    def test_ok_on_zero(self) -> None:
        assert CommandResult(args=("true",), returncode=0).ok is True

    def test_not_ok_on_nonzero(self) -> None:
        assert CommandResult(args=("false",), returncode=1).ok is False

    def test_lines_strips_and_drops_blanks(self) -> None:
        result = CommandResult(args=("x",), returncode=0, stdout="  a \n\n b\n   \n")
        assert result.lines == ["a", "b"]

    def test_is_frozen(self) -> None:
        result = CommandResult(args=("x",), returncode=0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.returncode = 1  # type: ignore[misc]


class TestKubeconfigReport:
    def test_duplicates_removed_sums_sections(self) -> None:
        report = KubeconfigReport(
            clusters_before=3,
            clusters_after=2,
            contexts_before=4,
            contexts_after=2,
            users_before=1,
            users_after=1,
        )
        assert report.duplicates_removed == 3
        assert report.invalid_references == ()
        assert report.provider_groups == ()


class TestSmallModels:
    def test_stash_entry_equality(self) -> None:
        assert StashEntry("stash@{0}", "WIP") == StashEntry("stash@{0}", "WIP")

    def test_bigtable_target_defaults_to_none(self) -> None:
        target = BigtableTarget()
        assert target.project is None
        assert target.zone is None
