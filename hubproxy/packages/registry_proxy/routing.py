"""Upstream host and repository path resolution.

Docker image references are ambiguous: ``busybox``, ``library/busybox`` and
``docker.io/library/busybox`` all name the same repository, while
``ghcr.io/owner/image`` names a repository on another registry. These helpers
turn repository segments (taken from a request path or a token scope) into an
explicit upstream host and canonical repository path.
"""

from dataclasses import dataclass

DOCKER_HUB_REGISTRY = "registry-1.docker.io"

HOST_ALIASES = {
    "docker.io": DOCKER_HUB_REGISTRY,
}

LIBRARY_NAMESPACE = "library"


@dataclass(frozen=True)
class UpstreamTarget:
    host: str
    repository: list[str]

    @property
    def repository_path(self) -> str:
        return "/".join(self.repository)


def split_upstream(
    segments: list[str],
    default_upstream: str = DOCKER_HUB_REGISTRY,
) -> UpstreamTarget:
    """Resolve the upstream host and repository segments.

    The first segment is an explicit host when it contains a dot and at least
    one more segment follows it. A lone remaining segment is a Docker Hub
    official image and gets the ``library/`` namespace.
    """
    host = default_upstream
    repository = list(segments)

    if len(repository) >= 2 and "." in repository[0]:
        host = repository[0]
        repository = repository[1:]

    host = HOST_ALIASES.get(host, host)

    if len(repository) == 1:
        repository = [LIBRARY_NAMESPACE] + repository

    return UpstreamTarget(host=host, repository=repository)


def rewrite_scope(
    scope: str,
    default_upstream: str = DOCKER_HUB_REGISTRY,
) -> tuple[UpstreamTarget, str]:
    """Rewrite the repository part of a token scope.

    Example:
        repository:busybox:pull -> repository:library/busybox:pull
        repository:ghcr.io/owner/image:pull -> repository:owner/image:pull

    Returns:
        Resolved upstream target and the rewritten scope string
    """
    parts = scope.split(":", 2)
    repository = parts[1] if len(parts) > 1 else ""

    target = split_upstream(repository.split("/"), default_upstream)

    if len(parts) > 1:
        parts[1] = target.repository_path
    else:
        parts.append(target.repository_path)

    return target, ":".join(parts)


def split_proxy_path(
    path: str,
    default_upstream: str = DOCKER_HUB_REGISTRY,
) -> tuple[UpstreamTarget, str]:
    """Map an inbound ``/v2/...`` path onto an upstream target.

    The last two segments (``manifests/<ref>``, ``blobs/<digest>``,
    ``tags/list``) are kept as-is; everything between ``/v2/`` and them is
    the repository path.

    Returns:
        Resolved upstream target and the upstream path, starting with ``/v2/``
    """
    rest = path.removeprefix("/v2/").split("/")
    repository, suffix = rest[:-2], rest[-2:]

    target = split_upstream(repository, default_upstream)

    return target, "/v2/" + "/".join(target.repository + suffix)
