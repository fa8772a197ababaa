"""Apply a ``k8s/<resource-type>/`` manifest tree in dependency order.

Guarantees
----------
* Directories are applied strictly in :data:`~opskit.core.manifest_plan.APPLY_ORDER`.
* The first failing ``kubectl apply`` aborts the run.
* Readiness waits never fail the run; they only produce warnings.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from opskit.core.manifest_plan import build_apply_plan, unknown_directories
from opskit.core.models import ApplyStep
from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import PreconditionError

_NAME_COLUMNS: tuple[str, ...] = ("--no-headers", "-o", "custom-columns=:metadata.name")


class K8sApplyService:
    """Apply manifests and wait for workloads to become ready.

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
    # Planning
    # ------------------------------------------------------------------

    def plan(self, manifest_root: Path) -> list[ApplyStep]:
        """Validate *manifest_root* and return its apply plan."""
        if not manifest_root.is_dir():
            raise PreconditionError(
                f"Manifest directory not found: {manifest_root}",
                hint="Pass --manifests <DIR> or set OPSKIT_MANIFEST_ROOT.",
            )
        steps = build_apply_plan(manifest_root)
        for name in unknown_directories(manifest_root):
            self._reporter.warning(f"Skipping unrecognised manifest directory: {name}")
        return steps

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def apply(
        self,
        manifest_root: Path,
        *,
        wait: bool = True,
        wait_timeout: int = 180,
        on_step: Callable[[ApplyStep], None] | None = None,
    ) -> list[ApplyStep]:
        """Apply every manifest directory under *manifest_root* in order.

        Parameters
        ----------
        on_step:
            Optional callback invoked after each step completes, used by
            the CLI to advance a progress display.

        Returns
        -------
        list[ApplyStep]
            The steps that were applied.
        """
        self._runner.require("kubectl")
        steps = self.plan(manifest_root)
        self._reporter.section("Applying Kubernetes Manifests")

        if not steps:
            self._reporter.warning(f"No manifest directories found under {manifest_root}.")
            return steps

        for step in steps:
            self._reporter.info(f"Applying {step.label}...")
            command = ["kubectl", "apply", "-f", str(step.path)]
            if self._runner.dry_run:
                # Client-side dry run is safe to execute for real.
                command.append("--dry-run=client")
            ensure_ok(
                self._runner.run(command, mutating=not self._runner.dry_run),
                f"Failed to apply {step.label} from {step.path}.",
            )
            if on_step is not None:
                on_step(step)

        if wait and not self._runner.dry_run:
            self.wait_for_resources_ready(timeout=wait_timeout)

        self._reporter.section("All manifests applied")
        self._runner.run(["kubectl", "get", "all", "--all-namespaces"], mutating=False)
        return steps

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def _names(self, *args: str) -> list[str]:
        result = self._runner.run(["kubectl", "get", *args, *_NAME_COLUMNS], mutating=False, capture=True)
        return result.lines if result.ok else []

    def wait_for_resources_ready(self, *, timeout: int = 180) -> list[str]:
        """Wait for every deployment and statefulset in every namespace.

        Returns
        -------
        list[str]
            ``namespace/kind/name`` of every workload that did not become
            ready within *timeout* seconds.
        """
        self._reporter.info("Waiting for resources to be ready...")
        not_ready: list[str] = []

        for namespace in self._names("ns"):
            for deploy in self._names("deploy", "-n", namespace):
                self._reporter.info(
                    f"Waiting for deployment/{deploy} in namespace {namespace} to be ready..."
                )
                result = self._runner.run(
                    [
                        "kubectl", "wait", "--for=condition=available",
                        f"--timeout={timeout}s", f"deployment/{deploy}", "-n", namespace,
                    ],
                    mutating=False,
                )
                if not result.ok:
                    not_ready.append(f"{namespace}/deployment/{deploy}")

            for sts in self._names("statefulset", "-n", namespace):
                self._reporter.info(
                    f"Waiting for statefulset/{sts} in namespace {namespace} to be ready..."
                )
                result = self._runner.run(
                    [
                        "kubectl", "rollout", "status", f"statefulset/{sts}",
                        "-n", namespace, f"--timeout={timeout}s",
                    ],
                    mutating=False,
                )
                if not result.ok:
                    not_ready.append(f"{namespace}/statefulset/{sts}")

        for workload in not_ready:
            self._reporter.warning(f"{workload} did not become ready within {timeout}s.")
        self._reporter.success("Resource readiness check completed.")
        return not_ready
