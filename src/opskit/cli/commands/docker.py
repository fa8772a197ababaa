"""``opskit docker`` — bulk cleanup, information dump and stop-all."""

from __future__ import annotations

import argparse
from pathlib import Path

from opskit.cli import exit_codes
from opskit.cli.context import CommandContext
from opskit.core.docker_service import DockerService


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("docker", help="Docker housekeeping.")
    sub = parser.add_subparsers(dest="docker_command", metavar="COMMAND", required=True)

    cleanup = sub.add_parser(
        "cleanup",
        help="Delete ALL containers, images, volumes and networks.",
    )
    cleanup.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")
    cleanup.set_defaults(handler=_handle_cleanup)

    info = sub.add_parser("info", help="Show containers, images, volumes, networks and disk usage.")
    info.add_argument("-o", "--output", type=Path, default=None, metavar="FILE")
    info.set_defaults(handler=_handle_info)

    stop_all = sub.add_parser("stop-all", help="Stop every running container.")
    stop_all.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")
    stop_all.set_defaults(handler=_handle_stop_all)


def _handle_cleanup(args: argparse.Namespace, ctx: CommandContext) -> int:
    from opskit.cli.prompts import confirm

    if not args.yes and not ctx.runner.dry_run:
        question = (
            "This will delete ALL Docker containers, images, volumes, and networks. "
            "Are you sure?"
        )
        if not confirm(question):
            ctx.reporter.info("Cleanup canceled.")
            return exit_codes.GENERAL_ERROR

    DockerService(ctx.runner, ctx.reporter).cleanup()
    return exit_codes.SUCCESS


def _handle_info(args: argparse.Namespace, ctx: CommandContext) -> int:
    DockerService(ctx.runner, ctx.reporter).info(args.output)
    return exit_codes.SUCCESS


def _handle_stop_all(args: argparse.Namespace, ctx: CommandContext) -> int:
    from opskit.cli.prompts import confirm

    service = DockerService(ctx.runner, ctx.reporter)
    service.require_daemon()
    running = service.running_containers()
    if not running:
        ctx.reporter.info("No running containers found.")
        return exit_codes.SUCCESS

    ctx.reporter.info("The following containers will be stopped:")
    service.show_running()
    if not args.yes and not ctx.runner.dry_run:
        if not confirm("Are you sure you want to stop all running containers?"):
            ctx.reporter.info("Operation canceled.")
            return exit_codes.SUCCESS

    service.stop_containers(running)
    return exit_codes.SUCCESS
