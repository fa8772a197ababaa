"""Allow ``python -m opskit`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m opskit`` behaves identically to the ``opskit`` console
script.
"""

from __future__ import annotations

from opskit.cli.app import cli

if __name__ == "__main__":
    cli()
