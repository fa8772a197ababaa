"""``opskit doctor`` registration."""

from __future__ import annotations

import argparse

from opskit.cli.context import CommandContext


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("doctor", help="Check which wrapped tools are installed.")
    parser.set_defaults(handler=_handle_doctor)


def _handle_doctor(args: argparse.Namespace, ctx: CommandContext) -> int:
    from opskit.cli.doctor import run_doctor

    return run_doctor()
