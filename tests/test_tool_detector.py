"""Tests for external tool detection (infra/tool_detector.py).

All tests mock :func:`shutil.which` — no system dependency.

Coverage:
* ``detect_tool`` when the tool is found / missing.
* ``require_tool`` happy path and ``ToolNotFoundError``.
* Platform-specific install hints (Linux / macOS / Windows / unknown).
* Fixed hints for gcloud and cbt.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from opskit.exceptions import ToolNotFoundError
from opskit.infra.tool_detector import (
    WRAPPED_TOOLS,
    ToolStatus,
    detect_tool,
    install_hint,
    require_tool,
)


# ---------------------------------------------------------------------------
# detect_tool
# ---------------------------------------------------------------------------

class TestDetectTool:
    @patch("opskit.infra.tool_detector.shutil.which")
    def test_found(self, mock_which: object) -> None:
        mock_which.return_value = "/usr/bin/kubectl"  # type: ignore[union-attr]
        status = detect_tool("kubectl")

        assert status.found is True
        assert isinstance(status.path, Path)
        assert status.install_hint is None

    @patch("opskit.infra.tool_detector.platform.system", return_value="Linux")
    @patch("opskit.infra.tool_detector.shutil.which", return_value=None)
    def test_not_found(self, _which: object, _system: object) -> None:
        status = detect_tool("psql")

        assert status.found is False
        assert status.path is None
        assert status.install_hint == "sudo apt install postgresql-client"

    def test_status_is_frozen(self) -> None:
        status = ToolStatus(name="git", found=True, path=None, install_hint=None)
        with pytest.raises(AttributeError):
            status.found = False  # type: ignore[misc]


# ---------------------------------------------------------------------------
# require_tool
# ---------------------------------------------------------------------------

class TestRequireTool:
    @patch("opskit.infra.tool_detector.shutil.which", return_value="/usr/bin/git")
    def test_found_returns_path(self, _which: object) -> None:
        assert isinstance(require_tool("git"), Path)

    @patch("opskit.infra.tool_detector.platform.system", return_value="Darwin")
    @patch("opskit.infra.tool_detector.shutil.which", return_value=None)
    def test_missing_raises_with_hint(self, _which: object, _system: object) -> None:
        with pytest.raises(ToolNotFoundError, match="not installed") as exc_info:
            require_tool("docker")
        assert exc_info.value.tool == "docker"
        assert exc_info.value.hint == "Install with: brew install --cask docker"

    @patch("opskit.infra.tool_detector.shutil.which", return_value=None)
    def test_unknown_tool_has_no_hint(self, _which: object) -> None:
        with pytest.raises(ToolNotFoundError) as exc_info:
            require_tool("frobnicate")
        assert exc_info.value.hint is None


# ---------------------------------------------------------------------------
# install hints
# ---------------------------------------------------------------------------

class TestInstallHint:
    @pytest.mark.parametrize(
        ("system", "expected"),
        [
            ("Linux", "sudo apt install kubectl"),
            ("Darwin", "brew install kubectl"),
            ("Windows", "winget install Kubernetes.kubectl"),
            ("SunOS", None),
        ],
    )
    def test_platforms(self, system: str, expected: str | None) -> None:
        with patch("opskit.infra.tool_detector.platform.system", return_value=system):
            assert install_hint("kubectl") == expected

    @pytest.mark.parametrize("tool", ["gcloud", "cbt"])
    def test_fixed_hints_ignore_platform(self, tool: str) -> None:
        with patch("opskit.infra.tool_detector.platform.system", return_value="SunOS"):
            assert install_hint(tool)

    def test_every_wrapped_tool_has_guidance_on_linux(self) -> None:
        with patch("opskit.infra.tool_detector.platform.system", return_value="Linux"):
            assert all(install_hint(tool) for tool in WRAPPED_TOOLS)
