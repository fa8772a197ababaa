"""Runtime settings assembled from environment variables.

Every field has a default, so ``Settings.from_env()`` always succeeds.
Command-line flags override these values in the CLI layer.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})


def _default_kubeconfig_output() -> Path:
    return Path.home() / ".kube" / "merged-config.yaml"


@dataclass(frozen=True, slots=True)
class Settings:
    """Canonical configuration object passed to command handlers."""

    log_level: str = "INFO"
    log_file: Path | None = None
    dry_run: bool = False
    manifest_root: Path = Path("k8s")
    wait_timeout: int = 180
    bigtable_zone: str = "us-central1-a"
    kubeconfig_output: Path = field(default_factory=_default_kubeconfig_output)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``OPSKIT_*`` environment variables."""
        env = os.environ if environ is None else environ

        def _get(name: str) -> str | None:
            value = env.get(name)
            if value is None or not value.strip():
                return None
            return value.strip()

        defaults = cls()
        log_file = _get("OPSKIT_LOG_FILE")
        manifest_root = _get("OPSKIT_MANIFEST_ROOT")
        wait_timeout = _get("OPSKIT_WAIT_TIMEOUT")
        kubeconfig_output = _get("OPSKIT_KUBECONFIG_OUTPUT")

        return cls(
            log_level=(_get("OPSKIT_LOG_LEVEL") or defaults.log_level).upper(),
            log_file=Path(log_file) if log_file else None,
            dry_run=(_get("OPSKIT_DRY_RUN") or "").lower() in _TRUTHY,
            manifest_root=Path(manifest_root) if manifest_root else defaults.manifest_root,
            wait_timeout=_parse_int(wait_timeout, defaults.wait_timeout),
            bigtable_zone=_get("OPSKIT_BIGTABLE_ZONE") or defaults.bigtable_zone,
            kubeconfig_output=(
                Path(kubeconfig_output).expanduser()
                if kubeconfig_output
                else defaults.kubeconfig_output
            ),
        )


def _parse_int(value: str | None, default: int) -> int:
    """Return ``int(value)`` or *default* for missing/garbage input."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default
