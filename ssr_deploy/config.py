"""Settings for assembling a deployment, read from the environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

ENV_PREFIX = "SSR_DEPLOY_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class DeploySettings(BaseModel):
    app_root: Path = Field(default=Path("app"), description="Directory of the web application.")
    output_dir: str = Field(default=".output", description="Build output directory relative to app_root.")
    module_format: Optional[str] = Field(default=None, description="Force esm/cjs; derived from the manifest when unset.")
    handler: str = "index.handler"
    cdn_env_var: str = "NUXT_APP_CDN_URL"
    wait_for_invalidation: bool = True
    stack: str = "MyStack"

    model_config = ConfigDict(extra="forbid")

    @property
    def build_output(self) -> Path:
        return self.app_root / self.output_dir

    @property
    def server_dir(self) -> Path:
        return self.build_output / "server"

    @property
    def public_dir(self) -> Path:
        return self.build_output / "public"

    @property
    def server_manifest(self) -> Path:
        return self.server_dir / "package.json"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        env_file: Optional[Path] = None,
        **overrides: object,
    ) -> "DeploySettings":
        """Build settings from `SSR_DEPLOY_*` variables, explicit overrides winning."""

        if environ is None:
            if env_file is not None and Path(env_file).exists():
                load_dotenv(env_file, override=False)
            environ = os.environ

        payload: dict[str, object] = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or raw == "":
                continue
            payload[name] = _coerce_bool(name, raw) if name == "wait_for_invalidation" else raw
        payload.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid deployment settings: {exc}") from exc


def _coerce_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name.upper()} must be a boolean (got '{value}')")
