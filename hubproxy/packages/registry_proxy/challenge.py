import re
from dataclasses import dataclass

from .errors import MalformedChallenge

# key="value" pairs, honouring backslash escapes inside the quotes
_QUOTED_VALUE = re.compile(r'="((?:\\.|[^"\\])*)"')


@dataclass(frozen=True)
class AuthChallenge:
    realm: str
    service: str


def parse_challenge(header_value: str) -> AuthChallenge:
    """Parse a ``WWW-Authenticate: Bearer`` challenge.

    Sample:
        Bearer realm="https://auth.docker.io/token",service="registry.docker.io"

    Registries emit realm first and service second, so values are taken by
    position rather than by key name.
    """
    values = _QUOTED_VALUE.findall(header_value)
    if len(values) < 2:
        raise MalformedChallenge(header_value)

    return AuthChallenge(realm=values[0], service=values[1])
