"""Pure kubeconfig document transformations.

The merge itself is delegated to ``kubectl config view --flatten`` so
that kubectl's own precedence rules apply.  Everything that happens to
the merged document afterwards (deduplication, provider grouping and
reference validation) is implemented here on plain ``dict``/``list``
structures parsed with PyYAML.

Guarantees
----------
* No subprocess, no filesystem access.
* Input documents are never mutated; every transform returns a copy.
* Order of surviving entries is preserved.
"""

from __future__ import annotations

import copy
import re
from datetime import datetime, timedelta
from typing import Any

import yaml

from opskit.core.models import InvalidReference, KubeconfigReport, KubeContext
from opskit.exceptions import KubeconfigError, ValidationError

SECTIONS: tuple[str, ...] = ("clusters", "contexts", "users")
PROVIDERS: tuple[str, ...] = ("minikube", "kind", "k3d")
PROVIDER_GROUPS: tuple[str, ...] = (*PROVIDERS, "other")

_SECRET_PATTERN = re.compile(r"((?:token|password): ).*")
_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhdw])\s*$", re.IGNORECASE)
_DURATION_UNITS: dict[str, str] = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


# ---------------------------------------------------------------------------
# Parsing / serialisation
# ---------------------------------------------------------------------------

def load_document(text: str, *, source: str = "kubeconfig") -> dict[str, Any]:
    """Parse *text* into a mapping or raise :class:`KubeconfigError`."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise KubeconfigError(f"Invalid YAML in {source}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise KubeconfigError(
            f"{source} is not a YAML mapping.",
            hint="A kubeconfig file must be a mapping with apiVersion and kind keys.",
        )
    return data


def dump_document(doc: dict[str, Any]) -> str:
    """Serialise *doc* back to YAML, keeping key order."""
    return yaml.safe_dump(doc, default_flow_style=False, sort_keys=False)


def is_kubeconfig(doc: dict[str, Any]) -> bool:
    """Return ``True`` when *doc* declares ``apiVersion: v1`` / ``kind: Config``."""
    return doc.get("apiVersion") == "v1" and doc.get("kind") == "Config"


def _entries(doc: dict[str, Any], section: str) -> list[dict[str, Any]]:
    raw = doc.get(section)
    if not isinstance(raw, list):
        return []
    return [entry for entry in raw if isinstance(entry, dict)]


def list_contexts(doc: dict[str, Any]) -> list[KubeContext]:
    """Flatten the ``contexts`` section into :class:`KubeContext` rows."""
    rows: list[KubeContext] = []
    for entry in _entries(doc, "contexts"):
        body = entry.get("context") if isinstance(entry.get("context"), dict) else {}
        namespace = body.get("namespace")
        rows.append(
            KubeContext(
                name=str(entry.get("name", "")),
                cluster=str(body.get("cluster") or ""),
                user=str(body.get("user") or ""),
                namespace=str(namespace) if namespace else None,
            )
        )
    return rows


# ---------------------------------------------------------------------------
# Provider classification
# ---------------------------------------------------------------------------

def provider_for(context_name: str) -> str:
    """Classify a context name as ``minikube``, ``kind``, ``k3d`` or ``other``."""
    if context_name == "minikube" or context_name.startswith("minikube-"):
        return "minikube"
    if context_name.startswith("kind-"):
        return "kind"
    if context_name.startswith("k3d-"):
        return "k3d"
    return "other"


def matches_provider(context_name: str, provider: str | None) -> bool:
    """Return ``True`` when *context_name* belongs to *provider* (``None`` = any)."""
    if not provider:
        return True
    return provider_for(context_name) == provider


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

def deduplicate(doc: dict[str, Any]) -> tuple[dict[str, Any], dict[str, tuple[int, int]]]:
    """Drop repeated ``clusters``/``contexts``/``users`` entries by ``name``.

    The first occurrence wins, matching kubectl's merge precedence.

    Returns
    -------
    tuple
        The deduplicated copy and ``{section: (before, after)}`` counts.
    """
    result = copy.deepcopy(doc)
    counts: dict[str, tuple[int, int]] = {}
    for section in SECTIONS:
        entries = _entries(result, section)
        seen: set[str] = set()
        unique: list[dict[str, Any]] = []
        for entry in entries:
            name = str(entry.get("name", ""))
            if name in seen:
                continue
            seen.add(name)
            unique.append(entry)
        counts[section] = (len(entries), len(unique))
        if section in result or unique:
            result[section] = unique
    return result, counts


def organize_contexts(doc: dict[str, Any]) -> tuple[dict[str, Any], list[tuple[str, int]]]:
    """Reorder contexts into minikube, kind, k3d and other groups.

    Order inside each group is preserved.  Returns the reordered copy and
    the non-empty ``(group, count)`` pairs.
    """
    result = copy.deepcopy(doc)
    grouped: dict[str, list[dict[str, Any]]] = {group: [] for group in PROVIDER_GROUPS}
    for entry in _entries(result, "contexts"):
        grouped[provider_for(str(entry.get("name", "")))].append(entry)

    ordered: list[dict[str, Any]] = []
    groups: list[tuple[str, int]] = []
    for group in PROVIDER_GROUPS:
        if grouped[group]:
            groups.append((group, len(grouped[group])))
            ordered.extend(grouped[group])
    if "contexts" in result or ordered:
        result["contexts"] = ordered
    return result, groups


def set_context_namespace(doc: dict[str, Any], context: str, namespace: str) -> dict[str, Any]:
    """Return a copy of *doc* whose *context* defaults to *namespace*.

    Raises
    ------
    KubeconfigError
        When *context* is not present in the document.
    """
    result = copy.deepcopy(doc)
    for entry in _entries(result, "contexts"):
        if str(entry.get("name", "")) != context:
            continue
        body = entry.get("context")
        if not isinstance(body, dict):
            body = {}
            entry["context"] = body
        body["namespace"] = namespace
        return result
    raise KubeconfigError(f"Context '{context}' not found in exported kubeconfig.")


def find_invalid_references(doc: dict[str, Any]) -> list[InvalidReference]:
    """Return every context whose cluster or user reference is dangling."""
    clusters = {str(entry.get("name", "")) for entry in _entries(doc, "clusters")}
    users = {str(entry.get("name", "")) for entry in _entries(doc, "users")}

    invalid: list[InvalidReference] = []
    for ctx in list_contexts(doc):
        if not ctx.cluster or ctx.cluster not in clusters:
            invalid.append(InvalidReference(context=ctx.name, kind="cluster", target=ctx.cluster))
        if not ctx.user or ctx.user not in users:
            invalid.append(InvalidReference(context=ctx.name, kind="user", target=ctx.user))
    return invalid


def validate(doc: dict[str, Any]) -> tuple[list[str], list[InvalidReference]]:
    """Validate a merged kubeconfig.

    Raises
    ------
    KubeconfigError
        When the document is not an ``apiVersion: v1`` / ``kind: Config``
        kubeconfig.

    Returns
    -------
    tuple
        Warnings about empty sections and the dangling references.
    """
    if not is_kubeconfig(doc):
        raise KubeconfigError(
            "Merged configuration is not a valid kubeconfig.",
            hint="Expected apiVersion: v1 and kind: Config.",
        )
    warnings = [
        f"Merged configuration has no {section}."
        for section in SECTIONS
        if not _entries(doc, section)
    ]
    return warnings, find_invalid_references(doc)


def process_merged(
    doc: dict[str, Any],
    *,
    dedupe: bool = True,
    organize: bool = True,
    check: bool = True,
) -> tuple[dict[str, Any], KubeconfigReport]:
    """Run the post-merge pipeline and collect a :class:`KubeconfigReport`."""
    current = doc
    counts = {section: (len(_entries(doc, section)),) * 2 for section in SECTIONS}
    groups: list[tuple[str, int]] = []
    warnings: list[str] = []
    invalid: list[InvalidReference] = []

    if dedupe:
        current, counts = deduplicate(current)
    if organize:
        current, groups = organize_contexts(current)
    if check:
        warnings, invalid = validate(current)

    report = KubeconfigReport(
        clusters_before=counts["clusters"][0],
        clusters_after=counts["clusters"][1],
        contexts_before=counts["contexts"][0],
        contexts_after=counts["contexts"][1],
        users_before=counts["users"][0],
        users_after=counts["users"][1],
        provider_groups=tuple(groups),
        invalid_references=tuple(invalid),
        warnings=tuple(warnings),
    )
    return current, report


# ---------------------------------------------------------------------------
# Text-level helpers for exported files
# ---------------------------------------------------------------------------

def sanitize_text(text: str) -> str:
    """Replace every ``token:`` and ``password:`` value with a quoted ``[REDACTED]``."""
    return _SECRET_PATTERN.sub(r"\1'[REDACTED]'", text)


def parse_duration(value: str) -> timedelta:
    """Parse ``30m``, ``24h``, ``7d`` style durations.

    Raises
    ------
    ValidationError
        For anything that is not ``<number><s|m|h|d|w>``.
    """
    match = _DURATION_PATTERN.match(value)
    if match is None:
        raise ValidationError(
            f"Invalid duration: {value!r}",
            hint="Use formats like '30m', '24h' or '7d'.",
        )
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


def expiry_header(now: datetime, duration: str) -> str:
    """Return the ``# CREDENTIALS EXPIRE: …`` comment line for *duration*."""
    expires = now + parse_duration(duration)
    return f"# CREDENTIALS EXPIRE: {expires:%Y-%m-%d %H:%M:%S}"
