"""Command line interface for k3dctl.

Usage:
    k3dctl create --name dev --workers 2 --publish 8080:80@workers
    k3dctl plan --name dev --workers 2 --publish 8080:80@workers
    k3dctl stop --name dev
    k3dctl start --name dev
    k3dctl delete --name dev
    k3dctl list
    k3dctl stop --all

Environment variables:
    K3DCTL_CLUSTER          - Cluster name (default: k3s-default)
    K3DCTL_IMAGE            - k3s image
    K3DCTL_API_PORT         - API port, ``port`` or ``host:port`` (default: 6443)
    K3DCTL_PORT_AUTO_OFFSET - Worker host port offset (default: 0)
    K3DCTL_LOG_LEVEL        - Log level (default: INFO)
"""

from __future__ import annotations

import os
import sys
import typing as typ

import msgspec
from cyclopts import App, Parameter

from k3dctl.config import (
    DEFAULT_API_PORT,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_IMAGE,
    ClusterConfig,
)
from k3dctl.errors import K3dctlError
from k3dctl.logging import configure_logging, get_logger, log_warning
from k3dctl.plan import plan_cluster
from k3dctl.runtime import (
    cluster_exists,
    create_cluster,
    delete_cluster,
    list_clusters,
    require_exe,
    start_cluster,
    stop_cluster,
)

logger = get_logger(__name__)

app = App(
    name="k3dctl",
    help="Run multi-node k3s clusters in Docker",
    version="0.1.0",
)

ClusterName = typ.Annotated[
    str, Parameter(name=["--name", "-n"], env_var="K3DCTL_CLUSTER")
]


def _fail(error: K3dctlError) -> int:
    print(f"ERROR: {error}", file=sys.stderr)
    return 1


def _build_config(  # noqa: PLR0913
    *,
    name: str,
    workers: int,
    publish: list[str] | None,
    port_auto_offset: int,
    api_port: str,
    image: str,
    volume: list[str] | None,
    env: list[str] | None,
    server_arg: list[str] | None,
    auto_restart: bool,
) -> ClusterConfig:
    return ClusterConfig(
        name=name,
        image=image,
        api_port=api_port,
        workers=workers,
        publish=tuple(publish or ()),
        port_auto_offset=port_auto_offset,
        volumes=tuple(volume or ()),
        env=tuple(env or ()),
        server_args=tuple(server_arg or ()),
        auto_restart=auto_restart,
    )


@app.command
def create(  # noqa: PLR0913
    *,
    name: ClusterName = DEFAULT_CLUSTER_NAME,
    workers: int = 0,
    publish: typ.Annotated[
        list[str] | None, Parameter(name=["--publish", "--add-port"])
    ] = None,
    port_auto_offset: typ.Annotated[
        int, Parameter(env_var="K3DCTL_PORT_AUTO_OFFSET")
    ] = 0,
    api_port: typ.Annotated[
        str, Parameter(name=["--api-port", "-a"], env_var="K3DCTL_API_PORT")
    ] = DEFAULT_API_PORT,
    image: typ.Annotated[
        str, Parameter(name=["--image", "-i"], env_var="K3DCTL_IMAGE")
    ] = DEFAULT_IMAGE,
    volume: typ.Annotated[list[str] | None, Parameter(name=["--volume", "-v"])] = None,
    env: typ.Annotated[list[str] | None, Parameter(name=["--env", "-e"])] = None,
    server_arg: typ.Annotated[
        list[str] | None, Parameter(name=["--server-arg", "-x"])
    ] = None,
    auto_restart: bool = False,
) -> int:
    """Create a single- or multi-node k3s cluster in Docker containers.

    Args:
        name: Cluster name.
        workers: Number of worker nodes.
        publish: Publish node ports to the host, repeatable
            (``[ip:][host-port:]container-port[/protocol][@node-specifier]``).
            Without a node specifier the port is published on the server.
        port_auto_offset: Shift worker host ports by worker index plus this
            value, so several workers can publish the same container port.
        api_port: Kubernetes API port, ``port`` or ``host:port``.
        image: k3s image for every node.
        volume: Bind mount for every node (``source:destination``).
        env: Extra environment variable for the server (``KEY=VALUE``).
        server_arg: Extra argument passed to ``k3s server``.
        auto_restart: Restart containers unless explicitly stopped.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    cfg = _build_config(
        name=name,
        workers=workers,
        publish=publish,
        port_auto_offset=port_auto_offset,
        api_port=api_port,
        image=image,
        volume=volume,
        env=env,
        server_arg=server_arg,
        auto_restart=auto_restart,
    )
    try:
        cluster_plan = plan_cluster(cfg)
        require_exe("docker")
        if cluster_exists(name):
            print(f"Cluster '{name}' already exists.", file=sys.stderr)
            return 1
        print(f"Creating cluster '{name}' with {workers} worker(s)...")
        create_cluster(cluster_plan)
    except K3dctlError as e:
        return _fail(e)

    print(f"Cluster '{name}' created successfully.")
    return 0


@app.command
def plan(  # noqa: PLR0913
    *,
    name: ClusterName = DEFAULT_CLUSTER_NAME,
    workers: int = 0,
    publish: typ.Annotated[
        list[str] | None, Parameter(name=["--publish", "--add-port"])
    ] = None,
    port_auto_offset: typ.Annotated[
        int, Parameter(env_var="K3DCTL_PORT_AUTO_OFFSET")
    ] = 0,
    api_port: typ.Annotated[
        str, Parameter(name=["--api-port", "-a"], env_var="K3DCTL_API_PORT")
    ] = DEFAULT_API_PORT,
    image: typ.Annotated[
        str, Parameter(name=["--image", "-i"], env_var="K3DCTL_IMAGE")
    ] = DEFAULT_IMAGE,
) -> int:
    """Print the containers and published ports a create would produce.

    Nothing is started; join secrets are masked.

    Args:
        name: Cluster name.
        workers: Number of worker nodes.
        publish: Publish specs, as for ``create``.
        port_auto_offset: Worker host port offset, as for ``create``.
        api_port: Kubernetes API port, ``port`` or ``host:port``.
        image: k3s image for every node.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    cfg = _build_config(
        name=name,
        workers=workers,
        publish=publish,
        port_auto_offset=port_auto_offset,
        api_port=api_port,
        image=image,
        volume=None,
        env=None,
        server_arg=None,
        auto_restart=False,
    )
    try:
        cluster_plan = plan_cluster(cfg)
    except K3dctlError as e:
        return _fail(e)

    encoded = msgspec.json.encode(cluster_plan.to_builtins())
    print(msgspec.json.format(encoded, indent=2).decode())
    return 0


def _cluster_names(name: str, *, all_clusters: bool) -> list[str] | None:
    """Return the clusters a lifecycle command acts on, or None if missing."""
    if all_clusters:
        return [cluster.name for cluster in list_clusters()]
    if not cluster_exists(name):
        print(f"Cluster '{name}' does not exist.")
        return None
    return [name]


def _lifecycle(
    name: str,
    action: typ.Callable[[str], None],
    verb: str,
    *,
    all_clusters: bool,
) -> int:
    try:
        require_exe("docker")
        names = _cluster_names(name, all_clusters=all_clusters)
        if names is None:
            return 1
        if not names:
            print("No clusters found!")
        for cluster_name in names:
            print(f"{verb} cluster '{cluster_name}'...")
            action(cluster_name)
    except K3dctlError as e:
        return _fail(e)
    return 0


AllClusters = typ.Annotated[bool, Parameter(name=["--all", "-a"])]


@app.command
def delete(
    *, name: ClusterName = DEFAULT_CLUSTER_NAME, all_clusters: AllClusters = False
) -> int:
    """Delete a cluster's containers and network.

    Args:
        name: Cluster name.
        all_clusters: Delete every cluster instead of ``name``.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    return _lifecycle(name, delete_cluster, "Deleting", all_clusters=all_clusters)


@app.command
def stop(
    *, name: ClusterName = DEFAULT_CLUSTER_NAME, all_clusters: AllClusters = False
) -> int:
    """Stop a running cluster; it can be started again.

    Args:
        name: Cluster name.
        all_clusters: Stop every cluster instead of ``name``.

    """
    return _lifecycle(name, stop_cluster, "Stopping", all_clusters=all_clusters)


@app.command
def start(
    *, name: ClusterName = DEFAULT_CLUSTER_NAME, all_clusters: AllClusters = False
) -> int:
    """Start a stopped cluster.

    Args:
        name: Cluster name.
        all_clusters: Start every cluster instead of ``name``.

    """
    return _lifecycle(name, start_cluster, "Starting", all_clusters=all_clusters)


_LIST_ROW = "{:<24} {:<40} {:<10} {}"


@app.command(name="list")
def list_() -> int:
    """List clusters with their image, status and running workers.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    try:
        require_exe("docker")
        clusters = list_clusters()
    except K3dctlError as e:
        return _fail(e)

    if not clusters:
        print("No clusters found!")
        return 0
    print(_LIST_ROW.format("NAME", "IMAGE", "STATUS", "WORKERS"))
    for cluster in clusters:
        workers = f"{cluster.workers_running}/{len(cluster.workers)}"
        image = cluster.server.image
        print(_LIST_ROW.format(cluster.name, image, cluster.status, workers))
    return 0


def main() -> int:
    """Entry point for the CLI."""
    raw_level = os.environ.get("K3DCTL_LOG_LEVEL", "INFO")
    normalized_level, invalid_level = configure_logging(raw_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid K3DCTL_LOG_LEVEL %r, falling back to %s",
            raw_level,
            normalized_level,
        )
    return app()


if __name__ == "__main__":
    sys.exit(main())
