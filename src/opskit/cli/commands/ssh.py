"""``opskit ssh`` — key pair generation."""

from __future__ import annotations

import argparse
from pathlib import Path

from opskit.cli import exit_codes
from opskit.cli.context import CommandContext
from opskit.core.ssh_service import DEFAULT_RSA_BITS, KEY_TYPES, SshKeyService


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("ssh", help="SSH key management.")
    sub = parser.add_subparsers(dest="ssh_command", metavar="COMMAND", required=True)

    keygen = sub.add_parser("keygen", help="Generate a passphrase-less key pair.")
    keygen.add_argument("name", metavar="NAME")
    keygen.add_argument("key_dir", type=Path, metavar="DIR")
    keygen.add_argument("--type", dest="key_type", choices=KEY_TYPES, default="rsa")
    keygen.add_argument("--bits", type=int, default=DEFAULT_RSA_BITS, help="RSA key size.")
    keygen.set_defaults(handler=_handle_keygen)


def _handle_keygen(args: argparse.Namespace, ctx: CommandContext) -> int:
    SshKeyService(ctx.runner, ctx.reporter).generate(
        args.name,
        args.key_dir,
        key_type=args.key_type,
        bits=args.bits,
    )
    return exit_codes.SUCCESS
