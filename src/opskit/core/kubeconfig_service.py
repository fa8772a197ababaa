"""Export a single kubeconfig context, or merge several kubeconfig files.

kubectl does the heavy lifting (``config view --minify --flatten`` for
export, ``KUBECONFIG=a:b config view --flatten`` for merging).  The
resulting documents are post-processed with the pure helpers in
:mod:`opskit.core.kubeconfig`.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from opskit.core import kubeconfig
from opskit.core.models import KubeconfigReport, KubeContext
from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import KubeconfigError, PreconditionError

SECURE_FILE_MODE: int = 0o600


class KubeconfigService:
    """Kubeconfig export and merge workflows.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`CommandRunner` protocol.
    reporter:
        Sink for status lines.
    clock:
        Returns "now"; injectable for deterministic backup names and
        expiry notes.
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
    # Context discovery
    # ------------------------------------------------------------------

    def current_context(self) -> str | None:
        """Return kubectl's current context, or ``None`` when unset."""
        result = self._runner.run(
            ["kubectl", "config", "current-context"], mutating=False, capture=True
        )
        name = result.stdout.strip()
        return name if result.ok and name else None

    def contexts(self) -> list[KubeContext]:
        """Return every context known to kubectl."""
        result = ensure_ok(
            self._runner.run(["kubectl", "config", "view"], mutating=False, capture=True),
            "Failed to read the kubectl configuration.",
        )
        return kubeconfig.list_contexts(kubeconfig.load_document(result.stdout))

    @staticmethod
    def filter_contexts(
        contexts: Sequence[KubeContext],
        *,
        provider: str | None = None,
        cluster_name: str | None = None,
    ) -> list[KubeContext]:
        """Keep contexts matching *provider* and whose cluster contains *cluster_name*."""
        return [
            ctx
            for ctx in contexts
            if kubeconfig.matches_provider(ctx.name, provider)
            and (not cluster_name or cluster_name in ctx.cluster)
        ]

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(
        self,
        context: str,
        output: Path | None = None,
        *,
        namespace: str | None = None,
        expire: str | None = None,
        sanitize: bool = False,
        merge: bool = False,
    ) -> Path:
        """Export *context* as a standalone kubeconfig file.

        Returns
        -------
        Path
            The file that was (or in dry-run mode would be) written.
        """
        self._runner.require("kubectl")
        target = output or Path(f"./kubeconfig-{context}.yaml")

        if context not in {ctx.name for ctx in self.contexts()}:
            raise PreconditionError(
                f"Context '{context}' does not exist.",
                hint="List contexts with: kubectl config get-contexts",
            )
        # Validate early so a bad duration never leaves a half-written file.
        header = kubeconfig.expiry_header(self._clock(), expire) if expire else None

        self._reporter.info(f"Exporting kubeconfig for context: {context}")
        result = ensure_ok(
            self._runner.run(
                ["kubectl", "config", "view", "--minify", "--flatten", f"--context={context}"],
                mutating=False,
                capture=True,
            ),
            f"Failed to export kubeconfig for context '{context}'.",
        )
        text = result.stdout

        if namespace:
            self._reporter.info(f"Setting default namespace to: {namespace}")
            doc = kubeconfig.set_context_namespace(
                kubeconfig.load_document(text), context, namespace
            )
            text = kubeconfig.dump_document(doc)

        # Only the exported context is sanitized; credentials already in
        # the merge target are left as they are.
        if sanitize:
            self._reporter.info("Sanitizing kubeconfig to remove sensitive information...")
            text = kubeconfig.sanitize_text(text)
            self._reporter.success("Kubeconfig sanitized successfully.")

        if merge and target.is_file():
            self._reporter.info(f"Merging with existing kubeconfig at: {target}")
            text = self._merge_with_existing(target, text)

        if header is not None:
            text = f"{header}\n{text}"
            self._reporter.success(f"Added expiry note: {header.split(': ', 1)[1]}")
            self._reporter.warning("Actual token expiry is not modified - this is just a note.")

        self.write_config(target, text, backup=False)
        return target

    def _merge_with_existing(self, existing: Path, text: str) -> str:
        with tempfile.TemporaryDirectory(prefix="opskit-kubeconfig-") as tmp:
            exported = Path(tmp) / "exported.yaml"
            exported.write_text(text, encoding="utf-8")
            result = ensure_ok(
                self._runner.run(
                    ["kubectl", "config", "view", "--flatten"],
                    mutating=False,
                    capture=True,
                    env={"KUBECONFIG": os.pathsep.join((str(existing), str(exported)))},
                ),
                f"Failed to merge with existing kubeconfig at {existing}.",
            )
        return result.stdout

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def validate_inputs(self, files: Sequence[Path]) -> list[Path]:
        """Return the readable YAML files among *files*.

        Raises
        ------
        PreconditionError
            When no files were given or none of them is usable.
        """
        if not files:
            raise PreconditionError("No input files specified.")

        self._reporter.info("Validating input files...")
        valid: list[Path] = []
        for path in files:
            if not path.is_file():
                self._reporter.error(f"Input file not found: {path}")
                continue
            try:
                doc = kubeconfig.load_document(
                    path.read_text(encoding="utf-8"), source=str(path)
                )
            except (KubeconfigError, OSError, UnicodeDecodeError):
                self._reporter.error(f"Invalid YAML file: {path}")
                continue
            if not kubeconfig.is_kubeconfig(doc):
                self._reporter.warning(f"File may not be a valid kubeconfig: {path}")
            valid.append(path)

        if not valid:
            raise PreconditionError("No valid kubeconfig files found.")
        self._reporter.success(f"Found {len(valid)} valid input files.")
        return valid

    def merge(
        self,
        files: Sequence[Path],
        output: Path,
        *,
        backup: bool = True,
        organize: bool = True,
        deduplicate: bool = True,
        validate: bool = True,
    ) -> KubeconfigReport:
        """Merge *files* into *output* and return the post-processing report."""
        self._runner.require("kubectl")
        valid = self.validate_inputs(files)

        self._reporter.info("Merging kubeconfig files...")
        result = ensure_ok(
            self._runner.run(
                ["kubectl", "config", "view", "--flatten"],
                mutating=False,
                capture=True,
                env={"KUBECONFIG": os.pathsep.join(str(path) for path in valid)},
            ),
            "Failed to merge kubeconfig files.",
        )
        self._reporter.success("Kubeconfig files merged successfully.")

        doc = kubeconfig.load_document(result.stdout, source="merged kubeconfig")
        processed, report = kubeconfig.process_merged(
            doc, dedupe=deduplicate, organize=organize, check=validate
        )
        self._report(report, deduplicate=deduplicate, organize=organize, validate=validate)

        self.write_config(output, kubeconfig.dump_document(processed), backup=backup)
        return report

    def _report(
        self,
        report: KubeconfigReport,
        *,
        deduplicate: bool,
        organize: bool,
        validate: bool,
    ) -> None:
        if deduplicate:
            self._reporter.info("Deduplication results:")
            self._reporter.info(f"  Clusters: {report.clusters_before} -> {report.clusters_after}")
            self._reporter.info(f"  Contexts: {report.contexts_before} -> {report.contexts_after}")
            self._reporter.info(f"  Users:    {report.users_before} -> {report.users_after}")
        if organize:
            for group, count in report.provider_groups:
                self._reporter.info(f"  Found {count} {group} contexts")
        if validate:
            for warning in report.warnings:
                self._reporter.warning(warning)
            for ref in report.invalid_references:
                self._reporter.warning(
                    f"  Context '{ref.context}' references non-existent {ref.kind}: {ref.target}"
                )
            if report.invalid_references:
                self._reporter.warning(
                    f"Found {len(report.invalid_references)} invalid context references."
                )
            else:
                self._reporter.success("All contexts have valid references.")

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write_config(self, output: Path, text: str, *, backup: bool = True) -> Path | None:
        """Write *text* to *output* with mode 0600.

        Returns
        -------
        Path | None
            The backup file created for a pre-existing *output*, if any.
        """
        if self._runner.dry_run:
            self._reporter.info(f"[dry-run] would write kubeconfig to {output}")
            return None

        backup_path: Path | None = None
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            if backup and output.is_file():
                backup_path = output.with_name(
                    f"{output.name}.{self._clock():%Y%m%d%H%M%S}.bak"
                )
                self._reporter.info(f"Creating backup of existing config: {backup_path}")
                shutil.copy2(output, backup_path)
            output.write_text(text, encoding="utf-8")
            os.chmod(output, SECURE_FILE_MODE)
        except OSError as exc:
            raise PreconditionError(f"Failed to write configuration to {output}: {exc}") from exc

        self._reporter.success(f"Kubeconfig written to: {output}")
        return backup_path
