"""Request dispatch for the registry proxy.

Each inbound request is classified once by path, in a fixed order:

    ROOT   "/"          greeting, no authorization involved
    PING   "/v2/"       API version check, gated
    AUTH   "/v2/auth"   token bundle issuance, never gated
    PROXY  "/v2/..."    forwarded upstream, gated
    OTHER  anything else

The token bundle lives only for the duration of one request: it is decoded
from the Authorization header, possibly extended with a freshly minted
upstream token, and handed back to the client, which presents it again as a
Bearer credential on later calls.
"""

from enum import Enum
from typing import Optional

import httpx
import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from .auth import ResolvedAuthorization, resolve_authorization
from .challenge import parse_challenge
from .codec import encode_bundle
from .errors import MalformedChallenge, TokenExchangeError
from .proxy import forward_request
from .routing import DOCKER_HUB_REGISTRY, rewrite_scope, split_proxy_path
from .tokens import fetch_token, request_challenge
from .types import DispatchConfig

logger = structlog.stdlib.get_logger(__name__)

API_VERSION_HEADERS = {"Docker-Distribution-API-Version": "registry/2.0"}

PROXY_SERVICE_NAME = "docker-proxy"


class RouteKind(str, Enum):
    ROOT = "root"
    PING = "ping"
    AUTH = "auth"
    PROXY = "proxy"
    OTHER = "other"


def classify_path(path: str) -> RouteKind:
    if path == "/":
        return RouteKind.ROOT
    if path == "/v2/":
        return RouteKind.PING
    if path == "/v2/auth":
        return RouteKind.AUTH
    if path.startswith("/v2/"):
        return RouteKind.PROXY
    return RouteKind.OTHER


def auth_realm(request: Request, public_url: str = "") -> str:
    if public_url:
        return f"{public_url.rstrip('/')}/v2/auth"
    return f"{request.url.scheme}://{request.url.netloc}/v2/auth"


def unauthorized_response(request: Request, public_url: str = "") -> JSONResponse:
    """401 pointing the Docker client at our own ``/v2/auth`` token endpoint."""
    realm = auth_realm(request, public_url)
    return JSONResponse(
        status_code=401,
        content={"message": "UNAUTHORIZED"},
        headers={
            **API_VERSION_HEADERS,
            "Www-Authenticate": f'Bearer realm="{realm}",service="{PROXY_SERVICE_NAME}"',
        },
    )


def not_found_response(path: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "errors": [
                {"code": "NOT_FOUND", "message": f"no route for {path}"},
            ]
        },
        headers=API_VERSION_HEADERS,
    )


async def mint_upstream_token(
    client: httpx.AsyncClient,
    upstream: str,
    scope: str,
    credential: Optional[str],
) -> Optional[str]:
    """Run the challenge + token exchange round trip for one upstream.

    Failures here never abort the request; they only mean no new token.

    Returns:
        The new bearer token, or None if none could be minted
    """
    try:
        challenge_header = await request_challenge(client, upstream)
        if challenge_header is None:
            return None

        challenge = parse_challenge(challenge_header)
        token = await fetch_token(client, challenge, scope, credential)
    except MalformedChallenge as e:
        logger.warning(
            "Upstream sent an unparseable challenge",
            upstream=upstream,
            header=e.header_value,
        )
        return None
    except TokenExchangeError as e:
        logger.warning(
            "Token exchange failed",
            upstream=upstream,
            scope=scope,
            error=str(e),
        )
        return None
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(
            "HTTP error during token exchange",
            upstream=upstream,
            scope=scope,
            error=str(e),
        )
        return None

    logger.info(
        "Fetched upstream token",
        upstream=upstream,
        scope=scope,
        realm=challenge.realm,
        service=challenge.service,
    )
    return token


async def issue_token_bundle(
    client: httpx.AsyncClient,
    resolved: ResolvedAuthorization,
    scope: Optional[str],
    default_upstream: str = DOCKER_HUB_REGISTRY,
) -> JSONResponse:
    """Answer ``/v2/auth``: extend the caller's bundle for the requested scope."""
    tokens = dict(resolved.tokens)

    if scope:
        target, scope = rewrite_scope(scope, default_upstream)
        token = await mint_upstream_token(
            client,
            target.host,
            scope,
            tokens.get(target.host),
        )
        if token:
            tokens[target.host] = token

    return JSONResponse(
        status_code=200,
        content={"token": encode_bundle(tokens)},
    )


async def dispatch_request(
    request: Request,
    client: httpx.AsyncClient,
    config: DispatchConfig,
) -> Response:
    """Produce the single response for an inbound request.

    Raises:
        UnexpectedAuthorizationScheme: Authorization scheme is not Basic/Bearer
        DecodeError: Authorization payload could not be decoded
        httpx.HTTPError: Upstream unreachable while forwarding
    """
    path = request.url.path
    kind = classify_path(path)

    if kind is RouteKind.ROOT:
        return JSONResponse(status_code=200, content={"message": "Hello World!"})

    authorization = request.headers.get("Authorization")
    resolved = resolve_authorization(authorization, config.shared_secret)

    if kind is RouteKind.PING:
        if not resolved.authorized or not resolved.header_present:
            return unauthorized_response(request, config.public_url)
        return JSONResponse(
            status_code=200,
            content={"message": "SUCCESS"},
            headers=API_VERSION_HEADERS,
        )

    if kind is RouteKind.AUTH:
        return await issue_token_bundle(
            client,
            resolved,
            request.query_params.get("scope"),
            config.default_upstream,
        )

    if not resolved.authorized:
        return unauthorized_response(request, config.public_url)

    if kind is RouteKind.PROXY:
        target, upstream_path = split_proxy_path(path, config.default_upstream)
        request.state.upstream = target.host
        return await forward_request(
            client,
            request,
            target.host,
            upstream_path,
            resolved.token_for(target.host),
        )

    return not_found_response(path)
