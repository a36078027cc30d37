"""Configuration for creating a k3s cluster in Docker."""

from __future__ import annotations

import dataclasses

from k3dctl.errors import ClusterConfigError
from k3dctl.hostname import check_cluster_name
from k3dctl.ports.api import ApiPort, parse_api_port

DEFAULT_CLUSTER_NAME = "k3s-default"
DEFAULT_IMAGE = "docker.io/rancher/k3s:v1.31.4-k3s1"
DEFAULT_API_PORT = "6443"
DEFAULT_REGISTRY = "docker.io"


@dataclasses.dataclass(frozen=True, slots=True)
class ClusterConfig:
    """Options for a cluster create.

    Attributes:
        name: Cluster name; prefixes every container and the network.
        image: k3s image run by every node.
        api_port: ``port`` or ``host:port`` for the Kubernetes API.
        workers: Number of worker nodes.
        publish: ``--publish`` specs, e.g. ``"8080:80@workers"``.
        port_auto_offset: When non-zero, worker ``i`` shifts its published
            host ports by ``i + port_auto_offset``.
        volumes: Docker bind mounts (``source:destination``) for every node.
        env: Extra ``KEY=VALUE`` variables for the server.
        server_args: Extra arguments to ``k3s server``.
        auto_restart: Run containers with ``--restart unless-stopped``.

    """

    name: str = DEFAULT_CLUSTER_NAME
    image: str = DEFAULT_IMAGE
    api_port: str = DEFAULT_API_PORT
    workers: int = 0
    publish: tuple[str, ...] = ()
    port_auto_offset: int = 0
    volumes: tuple[str, ...] = ()
    env: tuple[str, ...] = ()
    server_args: tuple[str, ...] = ()
    auto_restart: bool = False

    def validate(self) -> ApiPort:
        """Check the options and return the parsed API port.

        Publish specs are validated later, together with node names.

        Raises
        ------
        InvalidHostnameError
            If the cluster name is not a valid, short enough hostname.
        ClusterConfigError
            If a count, offset or the API port is invalid.

        """
        check_cluster_name(self.name)
        if self.workers < 0:
            raise ClusterConfigError.invalid_parameter(
                "workers", self.workers, "Must be >= 0"
            )
        if self.port_auto_offset < 0:
            raise ClusterConfigError.invalid_parameter(
                "port-auto-offset", self.port_auto_offset, "Must be >= 0"
            )
        if not self.image:
            raise ClusterConfigError.invalid_parameter(
                "image", self.image, "Must be non-empty"
            )
        return parse_api_port(self.api_port)

    @property
    def qualified_image(self) -> str:
        """Return the image reference with the default registry filled in.

        The first path segment names a registry when it contains ``.`` or
        ``:`` or is ``localhost``, as in Docker's own reference parsing.
        """
        first, sep, _ = self.image.partition("/")
        if sep and ("." in first or ":" in first or first == "localhost"):
            return self.image
        return f"{DEFAULT_REGISTRY}/{self.image}"
