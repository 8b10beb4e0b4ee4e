"""Registry proxy package for Docker Registry v2 API.

This package translates Docker Registry v2 requests for a single public
endpoint onto arbitrary upstream registries, minting upstream bearer tokens
on the client's behalf and handing them back as an opaque token bundle.
"""

from .auth import ResolvedAuthorization, resolve_authorization
from .challenge import AuthChallenge, parse_challenge
from .dispatch import RouteKind, classify_path, dispatch_request
from .errors import (
    DecodeError,
    MalformedChallenge,
    RegistryProxyError,
    TokenExchangeError,
    UnexpectedAuthorizationScheme,
)
from .proxy import forward_request
from .routing import UpstreamTarget, split_upstream
from .tokens import fetch_token
from .types import DispatchConfig

__all__ = [
    # Dispatch
    "RouteKind",
    "classify_path",
    "dispatch_request",
    "DispatchConfig",
    # Components
    "resolve_authorization",
    "ResolvedAuthorization",
    "split_upstream",
    "UpstreamTarget",
    "parse_challenge",
    "AuthChallenge",
    "fetch_token",
    "forward_request",
    # Errors
    "RegistryProxyError",
    "UnexpectedAuthorizationScheme",
    "DecodeError",
    "MalformedChallenge",
    "TokenExchangeError",
]
