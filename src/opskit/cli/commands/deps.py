"""``opskit deps`` — npm and pip dependency updates."""

from __future__ import annotations

import argparse
from pathlib import Path

from opskit.cli import exit_codes
from opskit.cli.console import console
from opskit.cli.context import CommandContext
from opskit.core.dependency_service import DependencyService


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("deps", help="Update npm and pip dependencies.")
    sub = parser.add_subparsers(dest="deps_command", metavar="COMMAND", required=True)

    npm = sub.add_parser("npm", help="Update npm dependencies of the current project.")
    npm.add_argument(
        "--dry-run",
        dest="npm_dry_run",
        action="store_true",
        help="Forward --dry-run to npm update.",
    )
    npm.add_argument(
        "--list-outdated",
        action="store_true",
        help="Only list outdated packages.",
    )
    npm.add_argument(
        "--update-package-json",
        action="store_true",
        help="Bump package.json with npm-check-updates, then npm install.",
    )
    npm.set_defaults(handler=_handle_npm)

    pip = sub.add_parser("pip", help="Upgrade packages from a requirements file.")
    pip.add_argument("requirements", type=Path, metavar="REQUIREMENTS")
    pip.set_defaults(handler=_handle_pip)

    clean = sub.add_parser("npm-clean-cache", help="Force-clean the npm cache.")
    clean.set_defaults(handler=_handle_clean_cache)

    list_global = sub.add_parser("npm-list-global", help="List globally installed npm packages.")
    list_global.add_argument("-o", "--output", type=Path, default=None, metavar="FILE")
    list_global.set_defaults(handler=_handle_list_global)

    update_all = sub.add_parser(
        "npm-update-all",
        help="Run npm outdated, update, install and audit fix.",
    )
    update_all.set_defaults(handler=_handle_update_all)


def _service(ctx: CommandContext) -> DependencyService:
    return DependencyService(ctx.runner, ctx.reporter)


def _handle_npm(args: argparse.Namespace, ctx: CommandContext) -> int:
    _service(ctx).update_npm(
        dry_run=args.npm_dry_run or ctx.runner.dry_run,
        list_only=args.list_outdated,
        update_package_json=args.update_package_json,
    )
    return exit_codes.SUCCESS


def _handle_pip(args: argparse.Namespace, ctx: CommandContext) -> int:
    _service(ctx).update_pip(args.requirements)
    return exit_codes.SUCCESS


def _handle_clean_cache(args: argparse.Namespace, ctx: CommandContext) -> int:
    _service(ctx).clean_npm_cache()
    return exit_codes.SUCCESS


def _handle_list_global(args: argparse.Namespace, ctx: CommandContext) -> int:
    listing = _service(ctx).list_global_npm(args.output)
    if args.output is None:
        for line in listing.splitlines():
            console.out(line)
    return exit_codes.SUCCESS


def _handle_update_all(args: argparse.Namespace, ctx: CommandContext) -> int:
    _service(ctx).update_all_npm()
    return exit_codes.SUCCESS
