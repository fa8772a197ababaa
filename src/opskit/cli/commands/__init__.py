"""CLI command modules.

Each module exposes ``register(subparsers)`` to add its argument
parsers.  Every leaf parser sets a ``handler`` default with the
signature ``handler(args, ctx) -> int`` where *ctx* is a
:class:`~opskit.cli.context.CommandContext`.
"""

from __future__ import annotations

import argparse

from opskit.cli.commands import db, deps, docker, doctor, gcp, git, k8s, ssh

MODULES = (deps, git, k8s, gcp, docker, db, ssh, doctor)


def register_all(subparsers: argparse._SubParsersAction) -> None:
    """Register every command group on *subparsers*."""
    for module in MODULES:
        module.register(subparsers)
