"""Rewrite the working-directory manifest before the packager installs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Union

from ..schemas.package import WorkingDirectoryManifest
from .manifest import PACKAGE_MANIFEST, BundledDependencySet, dump_package_manifest, load_package_manifest
from .versions import UNRESOLVED_VERSION, ResolvedVersion, resolve_versions

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconcileResult:
    """Summary of one reconciliation pass."""

    manifest_path: Path
    dependencies: Dict[str, str]
    unresolved: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "manifest_path": str(self.manifest_path),
            "dependencies": dict(self.dependencies),
            "unresolved": list(self.unresolved),
        }


def rewrite_manifest(
    original: WorkingDirectoryManifest,
    bundled: BundledDependencySet,
    versions: Mapping[str, Union[str, ResolvedVersion]],
) -> WorkingDirectoryManifest:
    """Return `original` with its dependency map replaced by the bundled set."""

    dependencies: Dict[str, str] = {}
    for name in bundled:
        value = versions.get(name, UNRESOLVED_VERSION)
        dependencies[name] = value.version if isinstance(value, ResolvedVersion) else str(value)
    return original.with_dependencies(dependencies)


def reconcile_working_directory(workdir: Path, bundled: BundledDependencySet) -> ReconcileResult:
    """Read, resolve and rewrite `<workdir>/package.json` in one synchronous pass."""

    workdir = Path(workdir)
    manifest_path = workdir / PACKAGE_MANIFEST
    original = load_package_manifest(manifest_path)
    resolved = resolve_versions(workdir, bundled)
    rewritten = rewrite_manifest(original, bundled, resolved)
    dump_package_manifest(rewritten, manifest_path)

    unresolved = resolved.unresolved()
    logger.debug(
        "Rewrote %s with %d dependencies (%d unresolved)",
        manifest_path,
        len(bundled),
        len(unresolved),
    )
    return ReconcileResult(
        manifest_path=manifest_path,
        dependencies=rewritten.dependencies,
        unresolved=unresolved,
    )
