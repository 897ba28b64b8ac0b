"""Manifest helpers for bundle assembly."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Tuple

from pydantic import ValidationError

from ..errors import FatalManifestError
from ..schemas.package import ServerPackageManifest, WorkingDirectoryManifest
from .utils import read_json, write_json

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST = "package.json"


@dataclass(frozen=True)
class BundledDependencySet:
    """Dependency names the upstream build already copied into its output."""

    names: Tuple[str, ...] = ()

    @classmethod
    def of(cls, names: Iterable[str]) -> "BundledDependencySet":
        # Membership is what matters; first-seen order keeps written output stable.
        return cls(names=tuple(dict.fromkeys(names)))

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: object) -> bool:
        return name in self.names


def _read_object(path: Path) -> dict:
    try:
        payload = read_json(path)
    except FileNotFoundError as exc:
        raise FatalManifestError(path, "file not found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise FatalManifestError(path, f"unreadable ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise FatalManifestError(path, f"invalid JSON ({exc})") from exc
    if not isinstance(payload, dict):
        raise FatalManifestError(path, "top-level value must be an object")
    return payload


def load_server_manifest(output_dir: Path) -> ServerPackageManifest:
    """Load the upstream server manifest from a build output directory."""

    path = Path(output_dir) / PACKAGE_MANIFEST
    payload = _read_object(path)
    try:
        return ServerPackageManifest.model_validate(payload)
    except ValidationError as exc:
        raise FatalManifestError(path, f"schema mismatch ({exc.error_count()} errors)") from exc


def load_bundled_dependencies(output_dir: Path) -> BundledDependencySet:
    """Return the names listed under `bundledDependencies`, empty when absent."""

    manifest = load_server_manifest(output_dir)
    bundled = BundledDependencySet.of(manifest.bundled_dependencies)
    logger.debug("Loaded %d bundled dependencies from %s", len(bundled), output_dir)
    return bundled


def load_package_manifest(path: Path) -> WorkingDirectoryManifest:
    """Load a working-directory package manifest."""

    return WorkingDirectoryManifest(fields=_read_object(Path(path)))


def dump_package_manifest(manifest: WorkingDirectoryManifest, path: Path) -> None:
    """Write a package manifest to disk."""

    write_json(manifest.to_dict(), Path(path))
