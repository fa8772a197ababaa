"""opskit — developer and operations task automation.

A single command dispatcher that wraps npm, pip, git, docker, kubectl,
gcloud, ssh-keygen and the PostgreSQL client tools behind a layered
architecture.
"""

from opskit.version import __version__

__all__: list[str] = ["__version__"]
