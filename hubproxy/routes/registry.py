"""Docker Registry v2 API endpoint.

A single catch-all route hands every request to the registry proxy
dispatcher, which decides between the greeting, the version check, token
bundle issuance and upstream forwarding.

See: https://distribution.github.io/distribution/spec/api/
"""

import structlog
from fastapi import APIRouter, Request

from hubproxy.deps.upstream import ProxyConfig, UpstreamClient
from hubproxy.packages.registry_proxy import dispatch_request

logger = structlog.stdlib.get_logger(__name__)

router = APIRouter(tags=["Registry Proxy"])

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/", methods=ALL_METHODS, include_in_schema=False)
@router.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
async def registry_proxy(
    request: Request,
    client: UpstreamClient,
    config: ProxyConfig,
):
    """Dispatch a Docker client request.

    Args:
        request: Original request from the Docker client
        client: Shared HTTP client for upstream registries
        config: Gate secret, default upstream and public URL

    Returns:
        Greeting, version check, token bundle, 401 challenge or the
        upstream registry's response
    """
    logger.debug("Registry request", method=request.method, path=request.url.path)

    return await dispatch_request(request, client, config)
