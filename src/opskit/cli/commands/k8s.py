"""``opskit k8s`` — manifest application and kubeconfig export/merge."""

from __future__ import annotations

import argparse
import contextlib
from pathlib import Path
from typing import Any

from opskit.cli import exit_codes
from opskit.cli.context import CommandContext
from opskit.core.k8s_apply_service import K8sApplyService
from opskit.core.kubeconfig import PROVIDERS
from opskit.core.kubeconfig_service import KubeconfigService
from opskit.core.manifest_plan import build_apply_plan
from opskit.exceptions import EnvironmentError, PreconditionError, ValidationError


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("k8s", help="Kubernetes manifests and kubeconfig files.")
    sub = parser.add_subparsers(dest="k8s_command", metavar="COMMAND", required=True)

    apply = sub.add_parser("apply", help="Apply k8s/<resource-type>/ manifests in dependency order.")
    apply.add_argument(
        "-m",
        "--manifests",
        type=Path,
        default=None,
        metavar="DIR",
        help="Manifest root directory (default: k8s).",
    )
    apply.add_argument(
        "--no-wait",
        dest="wait",
        action="store_false",
        help="Do not wait for deployments and statefulsets to become ready.",
    )
    apply.add_argument(
        "--wait-timeout",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Readiness timeout per workload (default: 180).",
    )
    apply.set_defaults(handler=_handle_apply)

    export = sub.add_parser("export-kubeconfig", help="Export one context as a kubeconfig file.")
    export.add_argument("-c", "--context", default=None, help="Context to export.")
    export.add_argument("-n", "--name", default=None, help="Filter contexts by cluster name.")
    export.add_argument("-p", "--provider", choices=PROVIDERS, default=None)
    export.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Pick the context from a list.",
    )
    export.add_argument("-o", "--output", type=Path, default=None, metavar="FILE")
    export.add_argument(
        "-s",
        "--sanitize",
        action="store_true",
        help="Redact tokens and passwords.",
    )
    export.add_argument(
        "-e",
        "--expire",
        default=None,
        metavar="DURATION",
        help="Add an expiry note, e.g. 24h, 7d, 30m.",
    )
    export.add_argument("--namespace", default=None, help="Default namespace for the context.")
    export.add_argument(
        "--merge",
        action="store_true",
        help="Merge into the output file when it already exists.",
    )
    export.set_defaults(handler=_handle_export)

    merge = sub.add_parser("merge-kubeconfig", help="Merge kubeconfig files into one.")
    merge.add_argument("files", nargs="+", type=Path, metavar="FILE")
    merge.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        metavar="FILE",
        help="Output file (default: ~/.kube/merged-config.yaml).",
    )
    merge.add_argument("-f", "--force", action="store_true", help="Overwrite without asking.")
    merge.add_argument("--no-backup", dest="backup", action="store_false")
    merge.add_argument("--no-organize", dest="organize", action="store_false")
    merge.add_argument("--no-deduplicate", dest="deduplicate", action="store_false")
    merge.add_argument("--no-validate", dest="validate", action="store_false")
    merge.set_defaults(handler=_handle_merge)


# ---------------------------------------------------------------------------
# apply
# ---------------------------------------------------------------------------

def _progress(total: int) -> Any:
    """Return an :class:`ApplyProgress`, or a no-op context without Rich."""
    from opskit.cli.progress import ApplyProgress

    if total <= 0:
        return contextlib.nullcontext()
    try:
        return ApplyProgress(total)
    except EnvironmentError:
        return contextlib.nullcontext()


def _handle_apply(args: argparse.Namespace, ctx: CommandContext) -> int:
    root: Path = args.manifests or ctx.settings.manifest_root
    timeout: int = args.wait_timeout if args.wait_timeout is not None else ctx.settings.wait_timeout
    if timeout <= 0:
        raise ValidationError(
            f"Invalid wait timeout: {timeout}",
            hint="--wait-timeout must be a positive number of seconds.",
        )
    service = K8sApplyService(ctx.runner, ctx.reporter)

    total = len(build_apply_plan(root)) if root.is_dir() else 0
    with _progress(total) as progress:
        service.apply(root, wait=args.wait, wait_timeout=timeout, on_step=progress)
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# export-kubeconfig
# ---------------------------------------------------------------------------

def _choose_context(args: argparse.Namespace, service: KubeconfigService, ctx: CommandContext) -> str:
    from opskit.cli.prompts import prompt_context_selection

    if args.context:
        return args.context

    current = service.current_context()
    if args.interactive or args.name or args.provider:
        matches = service.filter_contexts(
            service.contexts(),
            provider=args.provider,
            cluster_name=args.name,
        )
        if not matches:
            raise PreconditionError(
                "No contexts match the given filters.",
                hint="List contexts with: kubectl config get-contexts",
            )
        return prompt_context_selection(matches, current)

    if current is None:
        raise PreconditionError(
            "No current context is set.",
            hint="Pass --context or use --interactive.",
        )
    ctx.reporter.info(f"Using current context: {current}")
    return current


def _handle_export(args: argparse.Namespace, ctx: CommandContext) -> int:
    service = KubeconfigService(ctx.runner, ctx.reporter)
    ctx.runner.require("kubectl")
    context = _choose_context(args, service, ctx)
    service.export(
        context,
        args.output,
        namespace=args.namespace,
        expire=args.expire,
        sanitize=args.sanitize,
        merge=args.merge,
    )
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# merge-kubeconfig
# ---------------------------------------------------------------------------

def _handle_merge(args: argparse.Namespace, ctx: CommandContext) -> int:
    from opskit.cli.prompts import confirm

    output: Path = (args.output or ctx.settings.kubeconfig_output).expanduser()
    if output.exists() and not args.force and not ctx.runner.dry_run:
        if not confirm(f"Output file {output} already exists. Overwrite?"):
            ctx.reporter.info("Operation cancelled.")
            return exit_codes.SUCCESS

    service = KubeconfigService(ctx.runner, ctx.reporter)
    service.merge(
        args.files,
        output,
        backup=args.backup,
        organize=args.organize,
        deduplicate=args.deduplicate,
        validate=args.validate,
    )
    ctx.reporter.info(f"To use the merged config: export KUBECONFIG={output}")
    return exit_codes.SUCCESS
