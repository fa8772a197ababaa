"""Core / service layer — command semantics and data transformations.

Rules
-----
* No ``print()`` calls.
* No ``subprocess``; every external command goes through the injected
  :class:`~opskit.core.protocols.CommandRunner`.
* No imports from ``cli`` or ``infra``.
* Pure helpers (manifest ordering, kubeconfig transforms, message
  rules) must be deterministic.
"""

from opskit.core.bigtable_service import BigtableService
from opskit.core.dependency_service import DependencyService
from opskit.core.docker_service import DockerService
from opskit.core.git_service import GitService
from opskit.core.k8s_apply_service import K8sApplyService
from opskit.core.kubeconfig_service import KubeconfigService
from opskit.core.models import (
    ApplyStep,
    BackupPlan,
    BigtableTarget,
    CommandResult,
    ConflictHit,
    KubeconfigReport,
    KubeContext,
    StashEntry,
)
from opskit.core.postgres_service import PostgresService
from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.ssh_service import SshKeyService

__all__: list[str] = [
    "ApplyStep",
    "BackupPlan",
    "BigtableService",
    "BigtableTarget",
    "CommandResult",
    "CommandRunner",
    "ConflictHit",
    "DependencyService",
    "DockerService",
    "GitService",
    "K8sApplyService",
    "KubeContext",
    "KubeconfigReport",
    "KubeconfigService",
    "PostgresService",
    "Reporter",
    "SshKeyService",
    "StashEntry",
]
