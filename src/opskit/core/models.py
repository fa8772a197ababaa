"""Domain models for opskit.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and a few derived properties.  They carry
zero I/O and no dependencies on external packages.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


# ---------------------------------------------------------------------------
# External command results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command invocation."""

    args: tuple[str, ...]
    """The argv that was (or, in dry-run mode, would have been) executed."""

    returncode: int
    """Process exit status.  ``0`` for skipped dry-run commands."""

    stdout: str = ""
    """Captured standard output; empty when output was streamed."""

    stderr: str = ""
    """Captured standard error; empty when output was streamed."""

    dry_run: bool = False
    """``True`` when the command was only printed, not executed."""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def lines(self) -> list[str]:
        """Non-empty, stripped lines of :attr:`stdout`."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# Kubernetes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ApplyStep:
    """One manifest directory scheduled for ``kubectl apply -f``."""

    directory: str
    """Sub-directory name below the manifest root (e.g. ``deployments``)."""

    label: str
    """Human readable resource kind (e.g. ``Deployments``)."""

    path: Path
    """Full path handed to kubectl."""


@dataclass(frozen=True, slots=True)
class KubeContext:
    """A flattened kubeconfig context entry."""

    name: str
    cluster: str
    user: str
    namespace: str | None = None


@dataclass(frozen=True, slots=True)
class InvalidReference:
    """A context pointing at a cluster or user that does not exist."""

    context: str
    kind: str
    """Either ``"cluster"`` or ``"user"``."""

    target: str
    """The referenced (missing) name; empty when the field was absent."""


@dataclass(frozen=True, slots=True)
class KubeconfigReport:
    """Statistics collected while post-processing a merged kubeconfig."""

    clusters_before: int = 0
    clusters_after: int = 0
    contexts_before: int = 0
    contexts_after: int = 0
    users_before: int = 0
    users_after: int = 0
    provider_groups: tuple[tuple[str, int], ...] = ()
    """``(provider, count)`` pairs in output order, empty groups omitted."""

    invalid_references: tuple[InvalidReference, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def duplicates_removed(self) -> int:
        return (
            (self.clusters_before - self.clusters_after)
            + (self.contexts_before - self.contexts_after)
            + (self.users_before - self.users_after)
        )


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class StashEntry:
    """A single row of ``git stash list``."""

    ref: str
    """Stash reference, e.g. ``stash@{0}``."""

    description: str


@dataclass(frozen=True, slots=True)
class ConflictHit:
    """A conflict marker found by ``git grep -n``."""

    path: str
    line: int
    marker: str
    text: str


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BackupPlan:
    """Where and how a database dump will be written."""

    database: str
    user: str
    path: Path
    compressed: bool = False


@dataclass(frozen=True, slots=True)
class OutdatedPackage:
    """An entry from ``npm outdated --json``."""

    name: str
    current: str | None
    wanted: str | None
    latest: str | None


# ---------------------------------------------------------------------------
# Bigtable
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BigtableTarget:
    """Identifiers addressed by a Bigtable command.

    Every field is optional here; which ones a command needs is decided
    by :data:`opskit.core.bigtable_service.REQUIRED_IDS`.
    """

    project: str | None = None
    instance: str | None = None
    cluster: str | None = None
    table: str | None = None
    backup: str | None = None
    zone: str | None = None
