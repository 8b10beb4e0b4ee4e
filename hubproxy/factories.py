import httpx

from hubproxy.packages.registry_proxy import DispatchConfig
from hubproxy.settings import settings


def upstream_client_factory() -> httpx.AsyncClient:
    """Create the HTTP client used for all outbound registry calls.

    One client is created per worker process (see lifespan in main) so
    connections to upstream registries are pooled across requests.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=settings.UPSTREAM_CONNECT_TIMEOUT,
            read=settings.UPSTREAM_READ_TIMEOUT,
            write=settings.UPSTREAM_WRITE_TIMEOUT,
            pool=settings.UPSTREAM_POOL_TIMEOUT,
        ),
        headers={"User-Agent": "hubproxy"},
    )


def dispatch_config_factory() -> DispatchConfig:
    return DispatchConfig(
        shared_secret=settings.AUTH_CREDENTIALS,
        default_upstream=settings.DEFAULT_UPSTREAM,
        public_url=settings.PUBLIC_URL,
    )
