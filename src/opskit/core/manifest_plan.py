"""Ordering of Kubernetes manifest directories for ``kubectl apply``.

Resources are applied in dependency order: namespaces first, then
cluster-wide definitions and RBAC, namespace policy, configuration,
services, workloads, autoscaling, and finally ingress.  The ordering is
a fixed table; a manifest root only decides which entries are present.
"""

from __future__ import annotations

from pathlib import Path

from opskit.core.models import ApplyStep

APPLY_ORDER: tuple[tuple[str, str], ...] = (
    ("namespace", "Namespaces"),
    ("customresourcedefinitions", "CustomResourceDefinitions"),
    ("clusterroles", "ClusterRoles"),
    ("clusterrolebindings", "ClusterRoleBindings"),
    ("resourcequotas", "ResourceQuotas"),
    ("limitranges", "LimitRanges"),
    ("networkpolicies", "NetworkPolicies"),
    ("serviceaccounts", "ServiceAccounts"),
    ("roles", "Roles"),
    ("rolebindings", "RoleBindings"),
    ("configmaps", "ConfigMaps"),
    ("secrets", "Secrets"),
    ("persistentvolumeclaims", "PersistentVolumeClaims"),
    ("services", "Services"),
    ("deployments", "Deployments"),
    ("statefulsets", "StatefulSets"),
    ("daemonsets", "DaemonSets"),
    ("jobs", "Jobs"),
    ("cronjobs", "CronJobs"),
    ("horizontalpodautoscalers", "HorizontalPodAutoscalers"),
    ("poddisruptionbudgets", "PodDisruptionBudgets"),
    ("ingress", "Ingress"),
)
"""``(directory, label)`` pairs in the order they must be applied."""


def build_apply_plan(manifest_root: Path) -> list[ApplyStep]:
    """Return the apply steps for every known directory under *manifest_root*.

    Directories that do not exist are skipped.  Unknown sub-directories
    are ignored: they have no defined position in the ordering.
    """
    steps: list[ApplyStep] = []
    for directory, label in APPLY_ORDER:
        path = manifest_root / directory
        if path.is_dir():
            steps.append(ApplyStep(directory=directory, label=label, path=path))
    return steps


def unknown_directories(manifest_root: Path) -> list[str]:
    """Return sub-directories of *manifest_root* that the plan will not apply."""
    known = {directory for directory, _ in APPLY_ORDER}
    if not manifest_root.is_dir():
        return []
    return sorted(
        entry.name
        for entry in manifest_root.iterdir()
        if entry.is_dir() and entry.name not in known and not entry.name.startswith(".")
    )
