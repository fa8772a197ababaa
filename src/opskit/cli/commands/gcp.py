"""``opskit gcp`` — Google Cloud helpers (Cloud Bigtable)."""

from __future__ import annotations

import argparse

from opskit.cli import exit_codes
from opskit.cli.context import CommandContext
from opskit.core.bigtable_service import COMMANDS, DESTRUCTIVE_COMMANDS, BigtableService
from opskit.core.models import BigtableTarget


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("gcp", help="Google Cloud helpers.")
    sub = parser.add_subparsers(dest="gcp_command", metavar="SERVICE", required=True)

    bigtable = sub.add_parser("bigtable", help="Manage Cloud Bigtable resources.")
    bigtable.add_argument("bigtable_command", choices=COMMANDS, metavar="COMMAND")
    bigtable.add_argument("-p", "--project", default=None, help="GCP project ID.")
    bigtable.add_argument("-i", "--instance", default=None, help="Bigtable instance ID.")
    bigtable.add_argument("-c", "--cluster", default=None, help="Cluster ID.")
    bigtable.add_argument("-t", "--table", default=None, help="Table ID.")
    bigtable.add_argument("-b", "--backup", default=None, help="Backup ID.")
    bigtable.add_argument("-z", "--zone", default=None, help="Zone for create-cluster.")
    bigtable.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")
    bigtable.set_defaults(handler=_handle_bigtable)


def _handle_bigtable(args: argparse.Namespace, ctx: CommandContext) -> int:
    command: str = args.bigtable_command
    service = BigtableService(
        ctx.runner,
        ctx.reporter,
        default_zone=ctx.settings.bigtable_zone,
    )
    target = service.prepare(
        command,
        BigtableTarget(
            project=args.project,
            instance=args.instance,
            cluster=args.cluster,
            table=args.table,
            backup=args.backup,
            zone=args.zone,
        ),
    )

    warning = DESTRUCTIVE_COMMANDS.get(command)
    if warning is not None and not args.yes and not ctx.runner.dry_run:
        from opskit.cli.prompts import confirm

        ctx.reporter.warning(warning)
        if not confirm("Are you sure?"):
            ctx.reporter.info("Operation cancelled")
            return exit_codes.SUCCESS

    service.execute(command, target)
    return exit_codes.SUCCESS
