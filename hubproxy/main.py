from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from hubproxy.factories import upstream_client_factory
from hubproxy.packages.registry_proxy import RegistryProxyError
from hubproxy.routes import registry
from hubproxy.utils.logging_utils import setup_logger_fastapi
from hubproxy.utils.sentry import init_sentry

logger = structlog.stdlib.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.upstream_client = upstream_client_factory()

    yield

    await app.state.upstream_client.aclose()


init_sentry()
app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
setup_logger_fastapi(app)


def registry_error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Docker Registry v2 compliant error body.

    See: https://distribution.github.io/distribution/spec/api/#errors
    """
    return JSONResponse(
        status_code=status_code,
        content={"errors": [{"code": code, "message": message}]},
        headers={"Docker-Distribution-API-Version": "registry/2.0"},
    )


@app.exception_handler(RegistryProxyError)
async def registry_proxy_exception_handler(request: Request, exc: RegistryProxyError):
    logger.warning(
        "Registry proxy request failed",
        path=request.url.path,
        code=exc.code,
        error=str(exc),
    )
    return registry_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, exc.code, str(exc)
    )


@app.exception_handler(httpx.HTTPError)
async def upstream_exception_handler(request: Request, exc: httpx.HTTPError):
    return registry_error_response(
        status.HTTP_502_BAD_GATEWAY, "UPSTREAM_UNAVAILABLE", str(exc)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"title": "Internal Server Error", "description": str(exc)},
    )


app.include_router(registry.router)
