"""Bundle manifest reconciliation and packaging policy."""

from .manifest import (
    BundledDependencySet,
    dump_package_manifest,
    load_bundled_dependencies,
    load_package_manifest,
    load_server_manifest,
)
from .pipeline import LifecycleResult, LifecycleStage, StageContext, StageHandler, command_installer, run_lifecycle, run_stage
from .policy import BundlePolicy, ModuleFormat, build_bundle_policy, policy_from_output
from .rewriter import ReconcileResult, reconcile_working_directory, rewrite_manifest
from .versions import UNRESOLVED_VERSION, ResolvedVersion, ResolvedVersionMap, resolve_version, resolve_versions

__all__ = [
    "BundledDependencySet",
    "load_bundled_dependencies",
    "load_server_manifest",
    "load_package_manifest",
    "dump_package_manifest",
    "UNRESOLVED_VERSION",
    "ResolvedVersion",
    "ResolvedVersionMap",
    "resolve_version",
    "resolve_versions",
    "ReconcileResult",
    "rewrite_manifest",
    "reconcile_working_directory",
    "BundlePolicy",
    "ModuleFormat",
    "build_bundle_policy",
    "policy_from_output",
    "LifecycleResult",
    "LifecycleStage",
    "StageContext",
    "StageHandler",
    "command_installer",
    "run_lifecycle",
    "run_stage",
]
