"""Container and network names derived from a cluster name."""

from __future__ import annotations

import enum

CONTAINER_NAME_PREFIX = "k3d"


class NodeRole(enum.StrEnum):
    """Role of a cluster node container."""

    SERVER = "server"
    WORKER = "worker"


def container_name(
    role: NodeRole, cluster_name: str, postfix: int | None = None
) -> str:
    """Return the container name for a node.

    >>> container_name(NodeRole.WORKER, "dev", 0)
    'k3d-dev-worker-0'
    >>> container_name(NodeRole.SERVER, "dev")
    'k3d-dev-server'

    """
    name = f"{CONTAINER_NAME_PREFIX}-{cluster_name}-{role}"
    if postfix is None:
        return name
    return f"{name}-{postfix}"


def all_container_names(
    cluster_name: str, server_count: int, worker_count: int
) -> list[str]:
    """Return the names of every container a cluster create will start.

    A lone server keeps the unsuffixed ``k3d-<cluster>-server`` name; several
    servers are numbered from zero like workers.
    """
    if server_count == 1:
        names = [container_name(NodeRole.SERVER, cluster_name)]
    else:
        names = [
            container_name(NodeRole.SERVER, cluster_name, postfix)
            for postfix in range(server_count)
        ]
    names.extend(
        container_name(NodeRole.WORKER, cluster_name, postfix)
        for postfix in range(worker_count)
    )
    return names


def network_name(cluster_name: str) -> str:
    """Return the name of the cluster's private Docker network."""
    return f"{CONTAINER_NAME_PREFIX}-{cluster_name}"
