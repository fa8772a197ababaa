"""Rich-based progress display for ``k8s apply``.

The :class:`ApplyProgress` callable is handed to
:meth:`~opskit.core.k8s_apply_service.K8sApplyService.apply` as its
``on_step`` callback and advances one tick per applied directory.

Design
------
* Uses the shared stderr console so streamed kubectl output is printed
  above the live bar.
* Shutdown-safe: calls after :meth:`stop` are silently ignored.
"""

from __future__ import annotations

from typing import Any

from opskit.cli.console import get_rich_console
from opskit.core.models import ApplyStep
from opskit.exceptions import EnvironmentError


class ApplyProgress:
    """Progress bar over a known number of apply steps.

    Usage::

        with ApplyProgress(total=len(plan)) as progress:
            service.apply(root, on_step=progress)
    """

    def __init__(self, total: int) -> None:
        try:
            from rich.progress import (
                BarColumn,
                MofNCompleteColumn,
                Progress,
                SpinnerColumn,
                TextColumn,
                TimeElapsedColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self._total: int = total
        self._task_id: Any = None
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> ApplyProgress:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self._started:
            self._progress.start()
            self._task_id = self._progress.add_task("Applying manifests", total=self._total)
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Step callback
    # ------------------------------------------------------------------

    def __call__(self, step: ApplyStep) -> None:
        """Advance the bar after *step* has been applied."""
        if not self._started:
            return
        self._progress.update(self._task_id, advance=1, description=f"Applied {step.label}")
