"""Registry proxy types and data structures.

This module contains shared types used across the registry proxy package.
No dependencies on hubproxy.* modules to maintain independence.
"""

from dataclasses import dataclass

from .routing import DOCKER_HUB_REGISTRY


@dataclass
class DispatchConfig:
    """Configuration for the registry proxy dispatcher.

    Attributes:
        shared_secret: Gate credential compared to the decoded Basic credential
                       (e.g., "user:password"); empty disables the gate
        default_upstream: Registry used when a path names no explicit host
                          (e.g., "registry-1.docker.io")
        public_url: Externally visible base URL used for the challenge realm
                    (e.g., "https://hub.example.com"); derived from the
                    request when empty
    """

    shared_secret: str = ""
    default_upstream: str = DOCKER_HUB_REGISTRY
    public_url: str = ""
