"""Wire the server function, API gateway and public asset CDN together."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..bundle.pipeline import StageHandler
from ..bundle.policy import BundlePolicy, policy_from_output
from ..config import DeploySettings
from ..errors import ConfigurationError
from ..schemas.plan import (
    ApiSpec,
    CorsSpec,
    DeploymentPlan,
    FunctionSpec,
    ResourceRef,
    StaticSiteSpec,
)

logger = logging.getLogger(__name__)

API_ID = "Nuxt"
CDN_ID = "PublicAssetCdn"
FUNCTION_ID = "EntryPointFunc"
DEFAULT_ROUTE = "$default"

BUCKET_METHODS = ["GET", "DELETE", "HEAD", "POST", "PUT"]


def compose_deployment(
    settings: DeploySettings,
    *,
    policy: Optional[BundlePolicy] = None,
    extra_stages: Sequence[StageHandler] = (),
) -> DeploymentPlan:
    """Build the plan; manifest and settings errors surface before anything is emitted."""

    server_dir = settings.server_dir
    public_dir = settings.public_dir
    if not server_dir.is_dir():
        raise ConfigurationError(f"Server output directory not found: {server_dir}")
    if not public_dir.is_dir():
        raise ConfigurationError(f"Public asset directory not found: {public_dir}")

    if policy is not None and extra_stages:
        raise ConfigurationError("Pass extra_stages when building the policy, not alongside a prebuilt one.")
    if policy is None:
        policy = policy_from_output(server_dir, format=settings.module_format, extra_stages=extra_stages)

    api_url = ResourceRef(resource=API_ID)
    cdn_url = ResourceRef(resource=CDN_ID)

    api = ApiSpec(
        id=API_ID,
        cors=CorsSpec(allow_methods=["ANY"]),
        routes={DEFAULT_ROUTE: FUNCTION_ID},
    )
    static_site = StaticSiteSpec(
        id=CDN_ID,
        path=public_dir.as_posix(),
        wait_for_invalidation=settings.wait_for_invalidation,
        bucket_cors=[CorsSpec(allow_methods=list(BUCKET_METHODS), allow_origins=["*", api_url])],
    )
    function = FunctionSpec(
        id=FUNCTION_ID,
        src_path=server_dir.as_posix(),
        handler=settings.handler,
        url_cors=CorsSpec(),
        bundle=policy.to_dict(),
        environment={settings.cdn_env_var: cdn_url},
    )

    plan = DeploymentPlan(
        stack=settings.stack,
        api=api,
        static_site=static_site,
        function=function,
        outputs={"CdnUrl": cdn_url, "NuxtEndpoint": api_url},
    )
    logger.debug("Composed deployment plan for stack %s", settings.stack)
    return plan
