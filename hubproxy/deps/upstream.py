"""Dependencies shared by the registry routes."""

from typing import Annotated

import httpx
from fastapi import Depends, Request

from hubproxy.factories import dispatch_config_factory
from hubproxy.packages.registry_proxy import DispatchConfig


def get_upstream_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.upstream_client


def get_dispatch_config() -> DispatchConfig:
    return dispatch_config_factory()


# Type aliases for dependency injection
UpstreamClient = Annotated[httpx.AsyncClient, Depends(get_upstream_client)]
ProxyConfig = Annotated[DispatchConfig, Depends(get_dispatch_config)]
