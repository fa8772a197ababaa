"""``opskit git`` — commit, push, conflict search, stashes and changelog."""

from __future__ import annotations

import argparse
from pathlib import Path

from opskit.cli import exit_codes
from opskit.cli.context import CommandContext
from opskit.core.git_service import GitService


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("git", help="Git workflow helpers.")
    sub = parser.add_subparsers(dest="git_command", metavar="COMMAND", required=True)

    push = sub.add_parser("push", help="git add ., commit and push in one step.")
    push.add_argument("message", metavar="MESSAGE")
    push.set_defaults(handler=_handle_push)

    commit = sub.add_parser("commit", help="Commit staged changes with a validated message.")
    commit.add_argument("message", metavar="MESSAGE")
    commit.set_defaults(handler=_handle_commit)

    conflicts = sub.add_parser("conflicts", help="Search tracked files for conflict markers.")
    conflicts.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when conflicts are found.",
    )
    conflicts.set_defaults(handler=_handle_conflicts)

    stash = sub.add_parser("stash", help="Apply or drop a stash.")
    stash.add_argument("--ref", default=None, help="Stash reference, e.g. stash@{0}.")
    stash.add_argument("--action", default=None, help="apply or drop.")
    stash.set_defaults(handler=_handle_stash)

    changelog = sub.add_parser("changelog", help="Write a changelog from git log.")
    changelog.add_argument("output", type=Path, metavar="OUTPUT")
    changelog.set_defaults(handler=_handle_changelog)


def _service(ctx: CommandContext) -> GitService:
    return GitService(ctx.runner, ctx.reporter)


def _handle_push(args: argparse.Namespace, ctx: CommandContext) -> int:
    _service(ctx).add_commit_push(args.message)
    return exit_codes.SUCCESS


def _handle_commit(args: argparse.Namespace, ctx: CommandContext) -> int:
    _service(ctx).validated_commit(args.message)
    return exit_codes.SUCCESS


def _handle_conflicts(args: argparse.Namespace, ctx: CommandContext) -> int:
    hits = _service(ctx).find_conflicts()
    if hits and args.strict:
        return exit_codes.GENERAL_ERROR
    return exit_codes.SUCCESS


def _handle_stash(args: argparse.Namespace, ctx: CommandContext) -> int:
    from opskit.cli.prompts import prompt_stash_action, prompt_stash_selection

    service = _service(ctx)
    stashes = service.list_stashes()
    if not stashes:
        ctx.reporter.info("No stashes found.")
        return exit_codes.SUCCESS

    ctx.reporter.section("Available stashes")
    for entry in stashes:
        ctx.reporter.info(f"{entry.ref}: {entry.description}")

    ref = args.ref or prompt_stash_selection(stashes)
    action = args.action or prompt_stash_action()
    service.stash_action(ref, action, stashes)
    return exit_codes.SUCCESS


def _handle_changelog(args: argparse.Namespace, ctx: CommandContext) -> int:
    _service(ctx).generate_changelog(args.output)
    return exit_codes.SUCCESS
