"""Schema definitions for package manifests and deployment plans."""

from .package import ServerPackageManifest, WorkingDirectoryManifest
from .plan import (
    ApiSpec,
    CorsSpec,
    DeploymentPlan,
    FunctionSpec,
    ResourceRef,
    StaticSiteSpec,
)

__all__ = [
    "ServerPackageManifest",
    "WorkingDirectoryManifest",
    "ApiSpec",
    "CorsSpec",
    "DeploymentPlan",
    "FunctionSpec",
    "ResourceRef",
    "StaticSiteSpec",
]
