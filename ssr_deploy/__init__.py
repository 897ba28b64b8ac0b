"""Deployment assembly helpers for server-rendered app bundles."""

__version__ = "0.1.0"
from .bundle import (
    BundledDependencySet,
    BundlePolicy,
    LifecycleStage,
    ModuleFormat,
    StageContext,
    build_bundle_policy,
    load_bundled_dependencies,
    policy_from_output,
    reconcile_working_directory,
    resolve_versions,
    rewrite_manifest,
    run_lifecycle,
)
from .compose import compose_deployment
from .config import DeploySettings
from .errors import ConfigurationError, FatalManifestError, InstallError, SsrDeployError
from .schemas import DeploymentPlan

__all__ = [
    "__version__",
    "BundledDependencySet",
    "BundlePolicy",
    "LifecycleStage",
    "ModuleFormat",
    "StageContext",
    "build_bundle_policy",
    "load_bundled_dependencies",
    "policy_from_output",
    "reconcile_working_directory",
    "resolve_versions",
    "rewrite_manifest",
    "run_lifecycle",
    "compose_deployment",
    "DeploySettings",
    "DeploymentPlan",
    "SsrDeployError",
    "FatalManifestError",
    "ConfigurationError",
    "InstallError",
]
