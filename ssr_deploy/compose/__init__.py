"""Compose the deployment plan around the bundled server function."""

from .composer import (
    API_ID,
    CDN_ID,
    FUNCTION_ID,
    compose_deployment,
)

__all__ = [
    "API_ID",
    "CDN_ID",
    "FUNCTION_ID",
    "compose_deployment",
]
