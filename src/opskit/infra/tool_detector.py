"""Infrastructure: external tool detection and platform guidance.

This module is responsible for locating the wrapped command-line tools
on the system PATH and providing platform-specific installation
guidance when one is missing.

Rules
-----
* Detection via :func:`shutil.which` only — no subprocess.
* No automatic installation.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from opskit.exceptions import ToolNotFoundError

WRAPPED_TOOLS: tuple[str, ...] = (
    "npm",
    "pip",
    "git",
    "docker",
    "kubectl",
    "gcloud",
    "cbt",
    "ssh-keygen",
    "pg_dump",
    "pg_restore",
    "psql",
)
"""Every executable some opskit command shells out to."""


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Result of a PATH probe for one executable.

    Attributes
    ----------
    name : str
        Executable name as looked up on PATH.
    found : bool
        Whether the executable was located.
    path : Path | None
        Absolute path to the executable, or ``None``.
    install_hint : str | None
        Suggested install command for the current platform.  ``None``
        when the tool is present.
    """

    name: str
    found: bool
    path: Path | None
    install_hint: str | None


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_tool(name: str) -> ToolStatus:
    """Probe the system for *name*.

    Returns a :class:`ToolStatus` regardless of whether the tool is
    present. The caller decides whether to abort or merely warn.
    """
    result = shutil.which(name)
    if result is not None:
        return ToolStatus(name=name, found=True, path=Path(result).resolve(), install_hint=None)
    return ToolStatus(name=name, found=False, path=None, install_hint=install_hint(name))


def require_tool(name: str) -> Path:
    """Locate *name* or raise :class:`ToolNotFoundError`."""
    status = detect_tool(name)
    if not status.found or status.path is None:
        hint = f"Install with: {status.install_hint}" if status.install_hint else None
        raise ToolNotFoundError(name, hint=hint)
    return status.path


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

_PACKAGES: dict[str, dict[str, str]] = {
    # tool: {platform: package}
    "npm": {"linux": "nodejs npm", "darwin": "node", "windows": "OpenJS.NodeJS"},
    "pip": {"linux": "python3-pip", "darwin": "python", "windows": "Python.Python.3.12"},
    "git": {"linux": "git", "darwin": "git", "windows": "Git.Git"},
    "docker": {"linux": "docker.io", "darwin": "--cask docker", "windows": "Docker.DockerDesktop"},
    "kubectl": {"linux": "kubectl", "darwin": "kubectl", "windows": "Kubernetes.kubectl"},
    "ssh-keygen": {"linux": "openssh-client", "darwin": "openssh", "windows": "Microsoft.OpenSSH.Beta"},
    "pg_dump": {"linux": "postgresql-client", "darwin": "libpq", "windows": "PostgreSQL.PostgreSQL"},
    "pg_restore": {"linux": "postgresql-client", "darwin": "libpq", "windows": "PostgreSQL.PostgreSQL"},
    "psql": {"linux": "postgresql-client", "darwin": "libpq", "windows": "PostgreSQL.PostgreSQL"},
}

_FIXED_HINTS: dict[str, str] = {
    "gcloud": "https://cloud.google.com/sdk/docs/install",
    "cbt": "gcloud components install cbt",
}


def install_hint(name: str) -> str | None:
    """Return an install command for *name* on the current OS."""
    if name in _FIXED_HINTS:
        return _FIXED_HINTS[name]
    packages = _PACKAGES.get(name)
    if packages is None:
        return None

    system = platform.system().lower()
    if system == "linux":
        return f"sudo apt install {packages['linux']}"
    if system == "darwin":
        return f"brew install {packages['darwin']}"
    if system == "windows":
        return f"winget install {packages['windows']}"
    return None
