"""``opskit db`` — PostgreSQL backup and restore."""

from __future__ import annotations

import argparse
from pathlib import Path

from opskit.cli import exit_codes
from opskit.cli.context import CommandContext
from opskit.core.postgres_service import PostgresService


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("db", help="PostgreSQL backup and restore.")
    sub = parser.add_subparsers(dest="db_command", metavar="COMMAND", required=True)

    backup = sub.add_parser("backup", help="Dump a database with pg_dump.")
    backup.add_argument("database", metavar="DB")
    backup.add_argument("user", metavar="USER")
    backup.add_argument("password", metavar="PASSWORD")
    backup.add_argument("backup_dir", type=Path, metavar="BACKUP_DIR")
    backup.add_argument("--compress", action="store_true", help="Write a .sql.gz file.")
    backup.set_defaults(handler=_handle_backup)

    restore = sub.add_parser("restore", help="Restore a .sql/.dump file, optionally gzipped.")
    restore.add_argument("database", metavar="DB")
    restore.add_argument("user", metavar="USER")
    restore.add_argument("password", metavar="PASSWORD")
    restore.add_argument("backup_file", type=Path, metavar="BACKUP_FILE")
    restore.set_defaults(handler=_handle_restore)


def _handle_backup(args: argparse.Namespace, ctx: CommandContext) -> int:
    PostgresService(ctx.runner, ctx.reporter).backup(
        args.database,
        args.user,
        args.password,
        args.backup_dir,
        compress=args.compress,
    )
    return exit_codes.SUCCESS


def _handle_restore(args: argparse.Namespace, ctx: CommandContext) -> int:
    PostgresService(ctx.runner, ctx.reporter).restore(
        args.database,
        args.user,
        args.password,
        args.backup_file,
    )
    return exit_codes.SUCCESS
