"""SSH key pair generation."""

from __future__ import annotations

from pathlib import Path

from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import PreconditionError, ValidationError

KEY_TYPES: tuple[str, ...] = ("rsa", "ed25519")
DEFAULT_RSA_BITS: int = 4096


class SshKeyService:
    """Generate passphrase-less key pairs with ``ssh-keygen``."""

    def __init__(self, runner: CommandRunner, reporter: Reporter) -> None:
        self._runner: CommandRunner = runner
        self._reporter: Reporter = reporter

    def generate(
        self,
        name: str,
        key_dir: Path,
        *,
        key_type: str = "rsa",
        bits: int | None = DEFAULT_RSA_BITS,
    ) -> Path:
        """Create ``key_dir/name`` and ``key_dir/name.pub``.

        ``bits`` is ignored for ed25519 keys, which have a fixed size.

        Returns
        -------
        Path
            The private key path.
        """
        if key_type not in KEY_TYPES:
            raise ValidationError(
                f"Unsupported key type: {key_type}",
                hint=f"Choose one of: {', '.join(KEY_TYPES)}",
            )
        if not name or "/" in name:
            raise ValidationError(f"Invalid key name: {name!r}")
        self._runner.require("ssh-keygen")

        key_path = key_dir / name
        if key_path.exists() or key_path.with_name(f"{name}.pub").exists():
            raise PreconditionError(
                f"Key already exists: {key_path}",
                hint="Choose another name or remove the existing key first.",
            )

        if not self._runner.dry_run:
            key_dir.mkdir(parents=True, exist_ok=True)

        argv = ["ssh-keygen", "-t", key_type]
        if key_type == "rsa" and bits:
            argv += ["-b", str(bits)]
        argv += ["-f", str(key_path), "-N", ""]

        ensure_ok(self._runner.run(argv), "ssh-keygen failed.")
        if not self._runner.dry_run:
            self._reporter.success(f"SSH key pair generated at {key_path} and {key_path}.pub.")
        return key_path
