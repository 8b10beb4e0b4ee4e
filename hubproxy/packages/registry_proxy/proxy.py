"""Generic HTTP forwarding for Docker Registry API requests.

This module provides the streaming forwarder used for every proxied
``/v2/...`` call. No dependencies on hubproxy.* modules outside this package.
"""

from typing import AsyncIterator, Optional

import httpx
import structlog
from fastapi import Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.datastructures import MutableHeaders

logger = structlog.stdlib.get_logger(__name__)

# Connection-scoped headers that must not cross the proxy
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}

BODY_METHODS = {"POST", "PUT", "PATCH"}


async def stream_request_body(request: Request) -> AsyncIterator[bytes]:
    """Stream request body from client in chunks.

    Args:
        request: FastAPI request object

    Yields:
        Chunks of request body data
    """
    async for chunk in request.stream():
        yield chunk


def build_upstream_headers(request: Request, token: Optional[str]) -> dict[str, str]:
    """Copy inbound headers for the upstream call.

    The client's own Authorization header is never forwarded: it is either
    replaced by the upstream bearer token or dropped.
    """
    headers = {
        name: value
        for name, value in request.headers.items()
        if name not in HOP_BY_HOP_HEADERS and name not in ("host", "authorization")
    }

    if token:
        headers["authorization"] = f"Bearer {token}"

    return headers


def build_response_headers(response: httpx.Response) -> MutableHeaders:
    """Upstream response headers minus hop-by-hop ones.

    Repeated headers (Link, Set-Cookie) stay separate lines.
    """
    return MutableHeaders(
        raw=[
            (name.lower(), value)
            for name, value in response.headers.raw
            if name.lower().decode("latin-1") not in HOP_BY_HOP_HEADERS
        ]
    )


async def forward_request(
    client: httpx.AsyncClient,
    request: Request,
    upstream: str,
    path: str,
    token: Optional[str] = None,
) -> StreamingResponse:
    """Forward a request to ``https://<upstream><path>``.

    The upstream response is streamed back untouched: status, headers and
    raw body bytes. Only the target URL and the Authorization header differ
    from the inbound request.

    Args:
        client: HTTP client used for outbound calls
        request: Original FastAPI request from the Docker client
        upstream: Registry hostname (e.g., "registry-1.docker.io")
        path: Upstream path (e.g., "/v2/library/busybox/manifests/latest")
        token: Bearer token for this upstream, if one was minted

    Returns:
        StreamingResponse with the upstream response

    Raises:
        httpx.HTTPError: If the upstream cannot be reached
    """
    target_url = httpx.URL(f"https://{upstream}{path}")
    if request.url.query:
        target_url = target_url.copy_with(query=request.url.query.encode())

    logger.info(
        "Proxying request",
        method=request.method,
        target_url=str(target_url),
        authenticated=bool(token),
    )

    upstream_request = client.build_request(
        method=request.method,
        url=target_url,
        headers=build_upstream_headers(request, token),
        content=stream_request_body(request)
        if request.method in BODY_METHODS
        else None,
    )

    try:
        response = await client.send(
            upstream_request, stream=True, follow_redirects=True
        )
    except httpx.HTTPError as e:
        logger.error(
            "HTTP error while proxying request",
            error=str(e),
            target_url=str(target_url),
        )
        raise

    logger.info(
        "Proxy response received",
        status_code=response.status_code,
        target_url=str(target_url),
    )

    return StreamingResponse(
        content=response.aiter_raw(),
        status_code=response.status_code,
        headers=build_response_headers(response),
        background=BackgroundTask(response.aclose),
    )
