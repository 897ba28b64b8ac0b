from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import pytest


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def install_module(workdir: Path, name: str, version: Optional[str]) -> Path:
    payload: Dict[str, Any] = {"name": name}
    if version is not None:
        payload["version"] = version
    return write_json(workdir / "node_modules" / name / "package.json", payload)


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SSR_DEPLOY_"):
            monkeypatch.delenv(name)


@pytest.fixture()
def app_root(tmp_path: Path) -> Path:
    """A build output with `.output/server` and `.output/public`."""

    root = tmp_path / "app"
    server = root / ".output" / "server"
    public = root / ".output" / "public"
    write_json(
        server / "package.json",
        {"name": "nuxt-app-prod", "version": "0.0.0", "type": "module", "bundledDependencies": ["pkgA", "pkgB"]},
    )
    (server / "index.mjs").write_text("export const handler = () => {};\n", encoding="utf-8")
    public.mkdir(parents=True)
    (public / "favicon.ico").write_bytes(b"\x00")
    return root


@pytest.fixture()
def server_dir(app_root: Path) -> Path:
    return app_root / ".output" / "server"


@pytest.fixture()
def workdir(tmp_path: Path) -> Path:
    """Packager staging directory: pkgA installed at 2.3.1, pkgB missing."""

    root = tmp_path / "work"
    write_json(
        root / "package.json",
        {
            "name": "nuxt-app-prod",
            "version": "0.0.0",
            "dependencies": {"pkgA": "^1.0.0", "stale": "3.0.0"},
            "private": True,
        },
    )
    install_module(root, "pkgA", "2.3.1")
    return root
