"""Authorization header resolution.

Docker clients present one of two credentials to the proxy:
    Authorization: Basic base64(user:password)
        the proxy's own gate credential, stored under the ``self`` key
    Authorization: Bearer base64(json token bundle)
        the bundle handed out by a previous ``/v2/auth`` call
"""

from dataclasses import dataclass, field
from typing import Optional

from .codec import SELF_KEY, TokenBundle, decode_bundle, decode_text
from .errors import UnexpectedAuthorizationScheme


@dataclass
class ResolvedAuthorization:
    """Outcome of inspecting one request's Authorization header.

    Attributes:
        authorized: Whether the caller passed the shared-secret gate
        tokens: Token bundle carried by the request (mutable for this request only)
        header_present: Whether the request carried an Authorization header at all
    """

    authorized: bool
    tokens: TokenBundle = field(default_factory=dict)
    header_present: bool = False

    def token_for(self, upstream: str) -> Optional[str]:
        return self.tokens.get(upstream) or None


def resolve_authorization(
    header_value: Optional[str],
    shared_secret: Optional[str] = None,
) -> ResolvedAuthorization:
    """Parse the Authorization header and check it against the shared secret.

    Args:
        header_value: Raw Authorization header value, or None when absent
        shared_secret: Configured gate credential; empty or None disables the gate

    Returns:
        ResolvedAuthorization with the decoded token bundle

    Raises:
        UnexpectedAuthorizationScheme: scheme is neither Basic nor Bearer
        DecodeError: credential payload is not valid base64 / JSON
    """
    tokens: TokenBundle = {}

    if header_value:
        scheme, _, credentials = header_value.partition(" ")
        scheme = scheme.lower()

        if scheme == "basic":
            tokens[SELF_KEY] = decode_text(credentials)
        elif scheme == "bearer":
            tokens = decode_bundle(credentials)
        else:
            raise UnexpectedAuthorizationScheme(scheme)

    authorized = True
    if shared_secret:
        authorized = tokens.get(SELF_KEY) == shared_secret

    return ResolvedAuthorization(
        authorized=authorized,
        tokens=tokens,
        header_present=bool(header_value),
    )
