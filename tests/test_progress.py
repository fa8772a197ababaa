"""Tests for the ``k8s apply`` progress bar (cli/progress.py)."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from opskit.cli.progress import ApplyProgress
from opskit.core.models import ApplyStep
from opskit.exceptions import EnvironmentError

_STEP = ApplyStep(directory="deployments", label="Deployments", path=Path("k8s/deployments"))


class TestApplyProgress:
    def test_advances_per_step(self) -> None:
        with ApplyProgress(total=2) as progress:
            progress(_STEP)
            progress(_STEP)
            task = progress._progress.tasks[0]
            assert task.completed == 2
            assert task.description == "Applied Deployments"

    def test_calls_after_stop_are_ignored(self) -> None:
        progress = ApplyProgress(total=1)
        progress.start()
        progress.stop()
        progress(_STEP)
        progress.stop()
        assert progress._progress.tasks[0].completed == 0

    def test_missing_rich(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "rich.progress", None)
        with pytest.raises(EnvironmentError, match="rich is not installed"):
            ApplyProgress(total=1)
