"""Errors raised by the registry proxy core.

Every error carries a Docker Registry style ``code`` so the HTTP layer can
render it inside the ``{"errors": [...]}`` envelope.
"""


class RegistryProxyError(Exception):
    code = "PROXY_ERROR"


class UnexpectedAuthorizationScheme(RegistryProxyError):
    """Authorization header used a scheme other than Basic or Bearer."""

    code = "UNSUPPORTED_AUTHORIZATION"

    def __init__(self, scheme: str):
        self.scheme = scheme
        super().__init__(f"unexpected authorization scheme: {scheme!r}")


class DecodeError(RegistryProxyError):
    """Credential or token bundle payload could not be decoded."""

    code = "DECODE_ERROR"


class MalformedChallenge(RegistryProxyError):
    """WWW-Authenticate header did not carry a realm and a service."""

    code = "MALFORMED_CHALLENGE"

    def __init__(self, header_value: str):
        self.header_value = header_value
        super().__init__(f"invalid Www-Authenticate header: {header_value}")


class TokenExchangeError(RegistryProxyError):
    """Token service call failed or answered without a token."""

    code = "TOKEN_EXCHANGE_FAILED"
