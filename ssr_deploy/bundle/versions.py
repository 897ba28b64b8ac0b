"""Resolve installed versions of bundled dependencies from a module tree."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Mapping, Optional

from .manifest import PACKAGE_MANIFEST
from .utils import read_json

logger = logging.getLogger(__name__)

UNRESOLVED_VERSION = "latest"
MODULES_DIR = "node_modules"


@dataclass(frozen=True)
class ResolvedVersion:
    """Outcome of one version lookup; unresolved entries carry the sentinel."""

    name: str
    version: str
    resolved: bool = True
    reason: Optional[str] = None

    @classmethod
    def unresolved(cls, name: str, reason: str) -> "ResolvedVersion":
        return cls(name=name, version=UNRESOLVED_VERSION, resolved=False, reason=reason)


class ResolvedVersionMap(Dict[str, ResolvedVersion]):
    """Mapping of dependency name to its lookup result."""

    def versions(self) -> Dict[str, str]:
        return {name: result.version for name, result in self.items()}

    def unresolved(self) -> List[str]:
        return [name for name, result in self.items() if not result.resolved]


def dependency_manifest_path(workdir: Path, name: str) -> Optional[Path]:
    """Return where `name` keeps its manifest, or None for names that escape the tree."""

    parts = PurePosixPath(name).parts
    if not name or name.startswith("/") or "\\" in name or "\x00" in name:
        return None
    if any(part in {"..", "."} for part in parts):
        return None
    return Path(workdir, MODULES_DIR, *parts, PACKAGE_MANIFEST)


def resolve_version(workdir: Path, name: str) -> ResolvedVersion:
    """Read the installed version of `name`; never raises for per-item failures."""

    path = dependency_manifest_path(Path(workdir), name)
    if path is None:
        return _unresolved(name, "unsafe dependency name")
    try:
        payload = read_json(path)
    except FileNotFoundError:
        return _unresolved(name, f"{path} not found")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        return _unresolved(name, f"{path} unreadable: {exc}")

    version = payload.get("version") if isinstance(payload, Mapping) else None
    if not isinstance(version, str) or not version.strip():
        return _unresolved(name, f"{path} has no version field")
    return ResolvedVersion(name=name, version=version)


def resolve_versions(workdir: Path, names: Iterable[str]) -> ResolvedVersionMap:
    """Resolve every name against the working directory module tree."""

    results = ResolvedVersionMap()
    for name in names:
        results[name] = resolve_version(workdir, name)
    return results


def _unresolved(name: str, reason: str) -> ResolvedVersion:
    logger.warning("Version for %s unresolved, using %r: %s", name, UNRESOLVED_VERSION, reason)
    return ResolvedVersion.unresolved(name, reason)
