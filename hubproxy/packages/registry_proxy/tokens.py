"""Bearer token exchange against an upstream registry's token service.

See: https://distribution.github.io/distribution/spec/auth/token/
"""

from typing import Optional

import httpx
import structlog

from .challenge import AuthChallenge
from .errors import TokenExchangeError

logger = structlog.stdlib.get_logger(__name__)


async def request_challenge(client: httpx.AsyncClient, upstream: str) -> Optional[str]:
    """Ask an upstream's ``/v2/`` endpoint for its challenge, without credentials.

    Args:
        client: HTTP client used for outbound calls
        upstream: Registry hostname (e.g., "registry-1.docker.io")

    Returns:
        The WWW-Authenticate header value when the upstream answers 401 with a
        challenge, otherwise None (anonymous access or no token service)

    Raises:
        httpx.HTTPError: If the upstream cannot be reached
    """
    response = await client.get(f"https://{upstream}/v2/", follow_redirects=True)

    challenge = response.headers.get("WWW-Authenticate")
    if response.status_code != 401 or not challenge:
        logger.debug(
            "Upstream did not issue a challenge",
            upstream=upstream,
            status_code=response.status_code,
        )
        return None

    return challenge


async def fetch_token(
    client: httpx.AsyncClient,
    challenge: AuthChallenge,
    scope: Optional[str] = None,
    credential: Optional[str] = None,
) -> str:
    """Fetch a bearer token from the challenge's realm.

    Args:
        client: HTTP client used for outbound calls
        challenge: Parsed realm and service of the upstream
        scope: Rewritten token scope (e.g., "repository:library/busybox:pull")
        credential: Token already held for this upstream, passed through as
                    ``Authorization: Bearer <credential>``

    Returns:
        The bearer token string

    Raises:
        TokenExchangeError: If the realm is not a valid URL, or the token service
            answers non-2xx or without a token
        httpx.HTTPError: If the token service cannot be reached
    """
    params = {}
    if challenge.service:
        params["service"] = challenge.service
    if scope:
        params["scope"] = scope

    headers = {}
    if credential:
        headers["Authorization"] = f"Bearer {credential}"

    try:
        response = await client.get(challenge.realm, params=params, headers=headers)
    except httpx.InvalidURL as e:
        raise TokenExchangeError(
            f"token realm {challenge.realm!r} is not a valid URL: {e}"
        ) from e

    if not response.is_success:
        raise TokenExchangeError(
            f"token service {challenge.realm} answered {response.status_code}"
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise TokenExchangeError(
            f"token service {challenge.realm} returned invalid JSON"
        ) from e

    # "access_token" is the OAuth2 spelling, some registries only send that
    token = None
    if isinstance(payload, dict):
        token = payload.get("token") or payload.get("access_token")
    if not isinstance(token, str) or not token:
        raise TokenExchangeError(
            f"token service {challenge.realm} returned no token"
        )

    return token
