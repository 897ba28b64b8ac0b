"""Command-line helpers for deployment assembly."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ssr_deploy.bundle.manifest import BundledDependencySet, load_server_manifest
from ssr_deploy.bundle.pipeline import StageContext, command_installer, run_lifecycle
from ssr_deploy.bundle.policy import format_for_manifest, policy_from_output
from ssr_deploy.bundle.rewriter import reconcile_working_directory
from ssr_deploy.compose import compose_deployment
from ssr_deploy.config import DeploySettings
from ssr_deploy.errors import SsrDeployError


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    try:
        settings = DeploySettings.from_env(
            env_file=_resolve_optional_path(args.env_file),
            app_root=_resolve_optional_path(getattr(args, "app_root", None)),
        )
        if args.command == "manifest":
            if args.manifest_command == "inspect":
                return _handle_manifest_inspect(args, settings)
            if args.manifest_command == "reconcile":
                return _handle_manifest_reconcile(args, settings)
            parser.error("manifest command requires a subcommand")
        if args.command == "policy":
            return _handle_policy_show(args, settings)
        if args.command == "stage":
            return _handle_stage(args, settings)
        if args.command == "compose":
            return _handle_compose(args, settings)
    except SsrDeployError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ssr-deploy", description="Server-rendered app deployment helpers.")
    parser.add_argument("--env-file", default=".env")
    parser.add_argument("--log-level", default="warning")
    subparsers = parser.add_subparsers(dest="command", required=True)

    manifest = subparsers.add_parser("manifest", help="Package manifest utilities.")
    manifest_sub = manifest.add_subparsers(dest="manifest_command", required=True)
    inspect = manifest_sub.add_parser("inspect", help="Show bundled dependencies of the server output.")
    inspect.add_argument("--output-dir", help="Server output directory (defaults to settings).")
    inspect.add_argument("--app-root")
    reconcile = manifest_sub.add_parser("reconcile", help="Pin bundled dependencies in a working directory.")
    reconcile.add_argument("--workdir", required=True)
    reconcile.add_argument("--output-dir")
    reconcile.add_argument("--app-root")

    policy = subparsers.add_parser("policy", help="Show the bundle policy.")
    policy.add_argument("--output-dir")
    policy.add_argument("--format")
    policy.add_argument("--app-root")

    stage = subparsers.add_parser("stage", help="Run the packaging lifecycle against a working directory.")
    stage.add_argument("--workdir", required=True)
    stage.add_argument("--output-dir")
    stage.add_argument("--format")
    stage.add_argument("--install-command", help="Command run in the working directory for the install step.")
    stage.add_argument("--app-root")

    compose = subparsers.add_parser("compose", help="Emit the deployment plan.")
    compose.add_argument("--app-root")
    compose.add_argument("--format")

    return parser


def _handle_manifest_inspect(args: argparse.Namespace, settings: DeploySettings) -> int:
    output_dir = _server_dir(args, settings)
    manifest = load_server_manifest(output_dir)
    payload = {
        "output_dir": str(output_dir),
        "bundled_dependencies": list(dict.fromkeys(manifest.bundled_dependencies)),
        "format": format_for_manifest(manifest, settings.module_format).value,
    }
    _print_json(payload)
    return 0


def _handle_manifest_reconcile(args: argparse.Namespace, settings: DeploySettings) -> int:
    policy = policy_from_output(_server_dir(args, settings), format=settings.module_format)
    result = reconcile_working_directory(
        _resolve_path(args.workdir),
        BundledDependencySet.of(policy.node_modules),
    )
    _print_json(result.to_dict())
    return 0


def _handle_policy_show(args: argparse.Namespace, settings: DeploySettings) -> int:
    policy = policy_from_output(_server_dir(args, settings), format=args.format or settings.module_format)
    _print_json(policy.to_dict())
    return 0


def _handle_stage(args: argparse.Namespace, settings: DeploySettings) -> int:
    output_dir = _server_dir(args, settings)
    policy = policy_from_output(output_dir, format=args.format or settings.module_format)
    installer = command_installer(args.install_command) if args.install_command else None
    context = StageContext(input_dir=_resolve_path(args.workdir), output_dir=output_dir)
    result = run_lifecycle(policy, context, installer=installer)
    payload = {"policy": policy.to_dict(), **result.to_dict()}
    _print_json(payload)
    return 0


def _handle_compose(args: argparse.Namespace, settings: DeploySettings) -> int:
    if args.format:
        settings = settings.model_copy(update={"module_format": args.format})
    plan = compose_deployment(settings)
    _print_json(plan.model_dump(mode="json"))
    return 0


def _server_dir(args: argparse.Namespace, settings: DeploySettings) -> Path:
    if getattr(args, "output_dir", None):
        return _resolve_path(args.output_dir)
    return settings.server_dir


def _resolve_path(value: str) -> Path:
    return Path(value).resolve()


def _resolve_optional_path(value: Optional[str]) -> Optional[Path]:
    if value is None:
        return None
    return _resolve_path(value)


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
