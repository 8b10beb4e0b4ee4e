import base64
import json
from typing import Any, AsyncIterator, Optional
from unittest.mock import patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from hubproxy.deps.upstream import get_upstream_client
from hubproxy.main import app
from hubproxy.settings import settings

DOCKER_HUB = "registry-1.docker.io"
DOCKER_HUB_CHALLENGE = (
    'Bearer realm="https://auth.docker.io/token",service="registry.docker.io"'
)
GHCR_CHALLENGE = 'Bearer realm="https://ghcr.io/token",service="ghcr.io"'

MANIFEST = b'{"schemaVersion":2,"mediaType":"application/vnd.oci.image.index.v1+json"}'
MANIFEST_DIGEST = "sha256:9ae97d36d26566ff84e8893c64a6dc4fe8ca6d1144bf5b87b2b85a32def253c7"


class StreamedBody(httpx.AsyncByteStream):
    """Response body that is only produced when the client iterates it,
    like a real socket, so it can be relayed with ``aiter_raw``.
    """

    def __init__(self, body: bytes):
        self.body = body

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self.body:
            yield self.body


def registry_response(
    status_code: int,
    content: bytes = b"",
    json_body: Any = None,
    headers: Optional[list[tuple[str, str]]] = None,
) -> httpx.Response:
    headers = list(headers or [])
    if json_body is not None:
        content = json.dumps(json_body).encode()
        headers.append(("Content-Type", "application/json"))
    if content:
        headers.append(("Content-Length", str(len(content))))
    return httpx.Response(status_code, headers=headers, stream=StreamedBody(content))


class FakeRegistry:
    """In-memory stand-in for upstream registries and their token services.

    Token services hand out ``token-for-<host>`` and registries only serve
    content to requests carrying that token.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.challenges: dict[str, Optional[str]] = {
            DOCKER_HUB: DOCKER_HUB_CHALLENGE,
            "ghcr.io": GHCR_CHALLENGE,
        }
        self.token_status = 200
        self.unreachable = False

    def token_for(self, host: str) -> str:
        return f"token-for-{host}"

    def requests_to(self, host: str, path: Optional[str] = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.url.host == host and (path is None or r.url.path == path)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        self.requests.append(request)
        host = request.url.host

        if request.url.path == "/token":
            return self._token_service(request)

        if host == "cdn.example.com":
            return registry_response(200, b"layer-bytes")

        if request.url.path == "/v2/":
            challenge = self.challenges.get(host)
            if challenge is None:
                return registry_response(200, json_body={})
            return registry_response(
                401,
                json_body={"errors": [{"code": "UNAUTHORIZED"}]},
                headers=[("WWW-Authenticate", challenge)],
            )

        if request.headers.get("Authorization") != f"Bearer {self.token_for(host)}":
            return registry_response(
                401,
                json_body={"errors": [{"code": "UNAUTHORIZED"}]},
                headers=[("WWW-Authenticate", self.challenges.get(host) or "")],
            )

        if "/manifests/" in request.url.path:
            if request.method == "PUT":
                return registry_response(
                    201, headers=[("Docker-Content-Digest", MANIFEST_DIGEST)]
                )
            return registry_response(
                200,
                MANIFEST,
                headers=[
                    ("Content-Type", "application/vnd.oci.image.index.v1+json"),
                    ("Docker-Content-Digest", MANIFEST_DIGEST),
                ],
            )

        if "/blobs/" in request.url.path:
            return registry_response(
                307, headers=[("Location", "https://cdn.example.com/layer")]
            )

        if request.url.path.endswith("/tags/list"):
            return registry_response(
                200,
                json_body={"name": request.url.path, "tags": ["latest"]},
                headers=[
                    ("Link", f'<{request.url.path}?last=latest>; rel="next"'),
                    ("Link", '<https://docs.example.com/tags>; rel="help"'),
                ],
            )

        return registry_response(
            404, json_body={"errors": [{"code": "NAME_UNKNOWN"}]}
        )

    def _token_service(self, request: httpx.Request) -> httpx.Response:
        if self.token_status != 200:
            return registry_response(
                self.token_status, json_body={"details": "denied"}
            )

        host = DOCKER_HUB if request.url.host == "auth.docker.io" else request.url.host
        return registry_response(
            200,
            json_body={"token": self.token_for(host), "expires_in": 300},
        )


def encode_bundle(bundle: dict) -> str:
    return base64.b64encode(json.dumps(bundle).encode()).decode()


def decode_bundle(token: str) -> dict:
    return json.loads(base64.b64decode(token))


def basic_auth(credentials: str) -> str:
    return f"Basic {base64.b64encode(credentials.encode()).decode()}"


@pytest.fixture(scope="function")
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture(scope="function")
async def upstream_client(fake_registry: FakeRegistry):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(fake_registry.handler)
    ) as upstream:
        yield upstream


@pytest.fixture(scope="function")
async def client(upstream_client: httpx.AsyncClient):
    """Test client talking to the app, with upstream calls served by FakeRegistry."""
    app.dependency_overrides[get_upstream_client] = lambda: upstream_client

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://localhost"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def shared_secret():
    with patch.object(settings, "AUTH_CREDENTIALS", "docker:s3cret"):
        yield "docker:s3cret"
