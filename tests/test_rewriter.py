from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from ssr_deploy.bundle.manifest import BundledDependencySet
from ssr_deploy.bundle.rewriter import reconcile_working_directory, rewrite_manifest
from ssr_deploy.bundle.versions import ResolvedVersion
from ssr_deploy.errors import FatalManifestError
from ssr_deploy.schemas.package import WorkingDirectoryManifest

from .conftest import write_json


def _read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_reconcile_pins_bundled_versions(workdir: Path) -> None:
    result = reconcile_working_directory(workdir, BundledDependencySet.of(["pkgA", "pkgB"]))

    manifest = _read(workdir / "package.json")
    assert manifest["dependencies"] == {"pkgA": "2.3.1", "pkgB": "latest"}
    assert result.dependencies == {"pkgA": "2.3.1", "pkgB": "latest"}
    assert result.unresolved == ["pkgB"]
    assert result.manifest_path == workdir / "package.json"


def test_dependency_map_is_replaced_not_merged(workdir: Path) -> None:
    reconcile_working_directory(workdir, BundledDependencySet.of(["pkgA"]))
    assert set(_read(workdir / "package.json")["dependencies"]) == {"pkgA"}


def test_other_fields_preserved_in_place(workdir: Path) -> None:
    before = _read(workdir / "package.json")
    reconcile_working_directory(workdir, BundledDependencySet.of(["pkgA", "pkgB"]))
    after = _read(workdir / "package.json")

    assert list(after) == list(before)
    for key in ("name", "version", "private"):
        assert after[key] == before[key]


def test_dependencies_appended_when_absent(tmp_path: Path) -> None:
    write_json(tmp_path / "package.json", {"name": "x", "main": "index.mjs"})
    reconcile_working_directory(tmp_path, BundledDependencySet.of(["pkgB"]))
    assert _read(tmp_path / "package.json") == {"name": "x", "main": "index.mjs", "dependencies": {"pkgB": "latest"}}


def test_empty_bundled_set_yields_empty_map(workdir: Path) -> None:
    result = reconcile_working_directory(workdir, BundledDependencySet())
    assert _read(workdir / "package.json")["dependencies"] == {}
    assert result.unresolved == []


def test_rewrite_is_byte_identical_when_repeated(workdir: Path) -> None:
    bundled = BundledDependencySet.of(["pkgA", "pkgB"])
    reconcile_working_directory(workdir, bundled)
    first = (workdir / "package.json").read_bytes()
    reconcile_working_directory(workdir, bundled)
    assert (workdir / "package.json").read_bytes() == first
    assert first.endswith(b"}\n")


def test_rewrite_manifest_is_pure() -> None:
    original = WorkingDirectoryManifest(fields={"name": "x", "dependencies": {"old": "1.0.0"}})
    rewritten = rewrite_manifest(
        original,
        BundledDependencySet.of(["a", "b", "c"]),
        {"a": ResolvedVersion(name="a", version="1.2.3"), "b": "4.5.6"},
    )
    assert rewritten.dependencies == {"a": "1.2.3", "b": "4.5.6", "c": "latest"}
    assert original.dependencies == {"old": "1.0.0"}


def test_missing_working_manifest_aborts_without_writing(tmp_path: Path) -> None:
    with pytest.raises(FatalManifestError):
        reconcile_working_directory(tmp_path, BundledDependencySet.of(["pkgA"]))
    assert list(tmp_path.iterdir()) == []


def test_corrupt_working_manifest_left_untouched(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(FatalManifestError):
        reconcile_working_directory(tmp_path, BundledDependencySet.of(["pkgA"]))
    assert path.read_text(encoding="utf-8") == "{broken"
    assert [entry.name for entry in tmp_path.iterdir()] == ["package.json"]


def test_rewrite_keeps_manifest_permissions(workdir: Path) -> None:
    path = workdir / "package.json"
    path.chmod(0o644)
    reconcile_working_directory(workdir, BundledDependencySet.of(["pkgA"]))
    assert oct(stat.S_IMODE(path.stat().st_mode)) == oct(0o644)

    path.chmod(0o640)
    reconcile_working_directory(workdir, BundledDependencySet.of(["pkgA"]))
    assert oct(stat.S_IMODE(path.stat().st_mode)) == oct(0o640)
