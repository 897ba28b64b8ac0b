"""Pydantic models describing the deployment plan handed to the provisioning engine."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer


class ResourceRef(BaseModel):
    """Symbolic reference to an attribute only known once a resource exists."""

    resource: str
    attribute: str = "url"

    model_config = ConfigDict(frozen=True)

    @property
    def token(self) -> str:
        return f"${{{self.resource}.{self.attribute}}}"

    @model_serializer
    def serialize_token(self) -> str:
        return self.token


Origin = Union[str, ResourceRef]


class CorsSpec(BaseModel):
    allow_headers: List[str] = Field(default_factory=lambda: ["*"])
    allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    allow_origins: List[Origin] = Field(default_factory=lambda: ["*"])

    model_config = ConfigDict(extra="forbid")


class ApiSpec(BaseModel):
    id: str
    cors: CorsSpec
    routes: Dict[str, str] = Field(default_factory=dict, description="Route key to function id.")

    model_config = ConfigDict(extra="forbid")


class StaticSiteSpec(BaseModel):
    id: str
    path: str
    wait_for_invalidation: bool = True
    bucket_cors: List[CorsSpec] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class FunctionSpec(BaseModel):
    id: str
    src_path: str
    handler: str
    url_cors: Optional[CorsSpec] = None
    bundle: Dict[str, Any] = Field(default_factory=dict)
    environment: Dict[str, Origin] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class DeploymentPlan(BaseModel):
    stack: str
    api: ApiSpec
    static_site: StaticSiteSpec
    function: FunctionSpec
    outputs: Dict[str, Origin] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")
