"""Models describing the package manifests read and written during packaging."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServerPackageManifest(BaseModel):
    """The `package.json` emitted next to the upstream server bundle."""

    name: Any = None
    version: Any = None
    type: Optional[str] = Field(default=None, description="Module type declared by the upstream build.")
    bundled_dependencies: List[str] = Field(
        default_factory=list,
        alias="bundledDependencies",
        description="Runtime dependencies already copied into the server output.",
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("bundled_dependencies", mode="before")
    @classmethod
    def null_means_empty(cls, value: Any) -> Any:
        return [] if value is None else value


@dataclass(frozen=True)
class WorkingDirectoryManifest:
    """Package manifest found in the packager working directory.

    Field order is kept as read so that rewriting only touches `dependencies`.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def dependencies(self) -> Dict[str, Any]:
        value = self.fields.get("dependencies")
        return dict(value) if isinstance(value, Mapping) else {}

    def with_dependencies(self, dependencies: Mapping[str, str]) -> "WorkingDirectoryManifest":
        payload = dict(self.fields)
        payload["dependencies"] = dict(dependencies)
        return WorkingDirectoryManifest(fields=payload)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.fields)
