"""Docker housekeeping: full cleanup, information dump, stop-all."""

from __future__ import annotations

from pathlib import Path

from opskit.core.protocols import CommandRunner, Reporter
from opskit.core.results import ensure_ok
from opskit.exceptions import PreconditionError

INFO_SECTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Docker Containers", ("docker", "ps", "-a")),
    ("Docker Images", ("docker", "images")),
    ("Docker Volumes", ("docker", "volume", "ls")),
    ("Docker Networks", ("docker", "network", "ls")),
    ("Docker System Information", ("docker", "system", "df")),
    ("Docker Version", ("docker", "--version")),
    ("Docker Info", ("docker", "info")),
)
"""``(title, argv)`` pairs shown by :meth:`DockerService.info`, in order."""


class DockerService:
    """Wrap the docker CLI for bulk operations.

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

    def require_daemon(self) -> None:
        """Require the docker CLI and a reachable daemon."""
        self._runner.require("docker")
        result = self._runner.run(["docker", "info"], mutating=False, capture=True)
        if not result.ok:
            raise PreconditionError(
                "Docker is not running.",
                hint="Please start Docker first.",
            )

    def _ids(self, *args: str) -> list[str]:
        result = self._runner.run(["docker", *args], mutating=False, capture=True)
        return result.lines if result.ok else []

    def running_containers(self) -> list[str]:
        """Return the ids of running containers."""
        return self._ids("ps", "-q")

    def show_running(self) -> None:
        """Print id and name of every running container."""
        self._runner.run(["docker", "ps", "--format", "table {{.ID}}\t{{.Names}}"], mutating=False)

    # ------------------------------------------------------------------
    # cleanup
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Remove every container, image, volume and network, then prune.

        Removal failures are warnings only (built-in networks such as
        ``bridge`` can never be removed); the final prune must succeed.
        """
        self._runner.require("docker")
        steps: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
            ("Stopping all running containers", ("ps", "-q"), ("stop",)),
            ("Removing all containers", ("ps", "-aq"), ("rm",)),
            ("Removing all images", ("images", "-q"), ("rmi", "-f")),
            ("Removing all volumes", ("volume", "ls", "-q"), ("volume", "rm")),
            ("Removing all networks", ("network", "ls", "-q"), ("network", "rm")),
        )
        for message, query, action in steps:
            self._reporter.info(f"{message}...")
            # Images can be listed once per tag.
            ids = list(dict.fromkeys(self._ids(*query)))
            if not ids:
                self._reporter.info("Nothing to do.")
                continue
            result = self._runner.run(["docker", *action, *ids], capture=True)
            if not result.ok:
                self._reporter.warning(f"{message} finished with errors.")

        self._reporter.info("Pruning all unused resources...")
        ensure_ok(
            self._runner.run(["docker", "system", "prune", "-a", "--volumes", "-f"]),
            "docker system prune failed.",
        )
        self._reporter.success("Docker cleanup complete.")

    # ------------------------------------------------------------------
    # info
    # ------------------------------------------------------------------

    def info(self, output: Path | None = None) -> None:
        """Show containers, images, volumes, networks, disk usage and version.

        With *output* the sections are captured and written to that file
        instead of the console.
        """
        self.require_daemon()

        if output is None:
            for title, argv in INFO_SECTIONS:
                self._reporter.section(title)
                self._runner.run(list(argv), mutating=False)
            self._reporter.success("Docker information displayed on the console")
            return

        chunks: list[str] = []
        for title, argv in INFO_SECTIONS:
            result = self._runner.run(list(argv), mutating=False, capture=True)
            chunks.append(f"{title}:\n{result.stdout.rstrip()}\n")
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text("\n".join(chunks), encoding="utf-8")
        except OSError as exc:
            raise PreconditionError(f"Cannot write to output file {output}: {exc}") from exc
        self._reporter.success(f"Docker information has been written to {output}")

    # ------------------------------------------------------------------
    # stop-all
    # ------------------------------------------------------------------

    def stop_containers(self, ids: list[str]) -> None:
        """Stop the containers in *ids*."""
        if not ids:
            self._reporter.info("No running containers found.")
            return
        self._reporter.info("Stopping all running containers...")
        ensure_ok(
            self._runner.run(["docker", "stop", *ids]),
            "Failed to stop some containers.",
        )
        self._reporter.success("All running containers have been stopped.")
