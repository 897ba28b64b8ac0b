"""Shared helpers used by bundle tooling."""

from __future__ import annotations

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Any


def read_json(path: Path) -> Any:
    """Read a JSON document from disk."""

    return json.loads(path.read_text(encoding="utf-8"))


def dumps_json(payload: Any) -> str:
    """Return the canonical text form used for every manifest we write."""

    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def write_json(payload: Any, path: Path) -> None:
    """Write JSON payload to disk with canonical formatting.

    The payload is serialised before the target is touched and lands through
    a rename, so readers never observe a half-written file.
    """

    content = dumps_json(payload)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def _target_mode(path: Path) -> int:
    # mkstemp creates 0600; keep the existing file's mode, else the usual umask default.
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask
