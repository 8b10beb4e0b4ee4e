import pytest

from hubproxy.packages.registry_proxy.routing import (
    rewrite_scope,
    split_proxy_path,
    split_upstream,
)


@pytest.mark.parametrize("name", ["busybox", "nginx", "alpine"])
def test_top_level_images_get_library_namespace(name: str):
    target, scope = rewrite_scope(f"repository:{name}:pull")

    assert target.host == "registry-1.docker.io"
    assert target.repository == ["library", name]
    assert scope == f"repository:library/{name}:pull"


def test_explicit_host_is_consumed():
    target = split_upstream(["ghcr.io", "owner", "image"])

    assert target.host == "ghcr.io"
    assert target.repository == ["owner", "image"]


def test_explicit_host_with_single_name_gets_library():
    target = split_upstream(["quay.io", "busybox"])

    assert target.host == "quay.io"
    assert target.repository == ["library", "busybox"]


def test_docker_io_alias():
    target = split_upstream(["docker.io", "library", "busybox"])

    assert target.host == "registry-1.docker.io"
    assert target.repository == ["library", "busybox"]


def test_dotted_single_segment_is_not_a_host():
    target = split_upstream(["my.image"])

    assert target.host == "registry-1.docker.io"
    assert target.repository == ["library", "my.image"]


def test_namespaced_image_is_untouched():
    target = split_upstream(["bitnami", "redis"])

    assert target.host == "registry-1.docker.io"
    assert target.repository == ["bitnami", "redis"]


def test_custom_default_upstream():
    target = split_upstream(["busybox"], default_upstream="mirror.example.com")

    assert target.host == "mirror.example.com"
    assert target.repository_path == "library/busybox"


def test_rewrite_scope_keeps_actions():
    target, scope = rewrite_scope("repository:ghcr.io/owner/image:pull,push")

    assert target.host == "ghcr.io"
    assert scope == "repository:owner/image:pull,push"


@pytest.mark.parametrize(
    "path,host,upstream_path",
    [
        (
            "/v2/busybox/manifests/latest",
            "registry-1.docker.io",
            "/v2/library/busybox/manifests/latest",
        ),
        (
            "/v2/library/busybox/manifests/latest",
            "registry-1.docker.io",
            "/v2/library/busybox/manifests/latest",
        ),
        (
            "/v2/ghcr.io/owner/image/blobs/sha256:abc",
            "ghcr.io",
            "/v2/owner/image/blobs/sha256:abc",
        ),
        (
            "/v2/docker.io/bitnami/redis/tags/list",
            "registry-1.docker.io",
            "/v2/bitnami/redis/tags/list",
        ),
        ("/v2/_catalog", "registry-1.docker.io", "/v2/_catalog"),
    ],
)
def test_split_proxy_path(path: str, host: str, upstream_path: str):
    target, new_path = split_proxy_path(path)

    assert target.host == host
    assert new_path == upstream_path
