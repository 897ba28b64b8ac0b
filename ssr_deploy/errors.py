"""Error types raised by deployment assembly."""

from __future__ import annotations


class SsrDeployError(RuntimeError):
    """Base class for failures that abort a deployment build."""


class FatalManifestError(SsrDeployError):
    """Raised when a package manifest cannot be read or parsed."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load package manifest {path}: {reason}")


class ConfigurationError(SsrDeployError):
    """Raised when a bundle policy or settings value is invalid."""


class InstallError(SsrDeployError):
    """Raised when the packager install step exits unsuccessfully."""
