"""Per-node container plans for a cluster create.

:func:`plan_cluster` turns a :class:`~k3dctl.config.ClusterConfig` into the
complete set of containers to start, without touching Docker. Publish specs
are resolved once for the whole cluster, then merged and built for each node.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import secrets
import string
import typing as typ

from k3dctl.logging import get_logger, log_info
from k3dctl.naming import NodeRole, all_container_names, network_name
from k3dctl.ports.merge import merge_port_specs
from k3dctl.ports.published import PublishedPorts, create_published_ports
from k3dctl.ports.resolver import map_nodes_to_port_specs

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from k3dctl.config import ClusterConfig
    from k3dctl.ports.api import ApiPort

logger = get_logger(__name__)

SERVER_COUNT = 1
KUBECONFIG_OUTPUT = "/output/kubeconfig.yaml"
_SECRET_ENV_KEYS = ("K3S_CLUSTER_SECRET", "K3S_TOKEN")
_TOKEN_ALPHABET = string.ascii_letters
_WORKER_TMPFS = ("/run", "/var/run")


def generate_token(length: int = 20) -> str:
    """Return a random token of ASCII letters."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


@dataclasses.dataclass(frozen=True, slots=True)
class NodePlan:
    """Everything needed to start one node container."""

    name: str
    role: NodeRole
    image: str
    command: tuple[str, ...]
    env: tuple[str, ...]
    labels: cabc.Mapping[str, str]
    published: PublishedPorts
    volumes: tuple[str, ...] = ()
    tmpfs: tuple[str, ...] = ()
    restart: str | None = None

    # Labels are a plain mapping, so plans compare by value but do not hash.
    __hash__ = None  # type: ignore[assignment]

    def to_builtins(self, *, redact: bool = True) -> dict[str, typ.Any]:
        """Return a JSON-ready view, masking join secrets unless told not to."""
        env = [_redact(item) for item in self.env] if redact else list(self.env)
        return {
            "name": self.name,
            "role": str(self.role),
            "image": self.image,
            "command": list(self.command),
            "env": env,
            "labels": dict(self.labels),
            "ports": self.published.to_engine(),
            "volumes": list(self.volumes),
            "tmpfs": list(self.tmpfs),
            "restart": self.restart,
        }


def _redact(item: str) -> str:
    key, sep, _ = item.partition("=")
    if sep and key in _SECRET_ENV_KEYS:
        return f"{key}=********"
    return item


@dataclasses.dataclass(frozen=True, slots=True)
class ClusterPlan:
    """The network and node containers of one cluster."""

    cluster_name: str
    network: str
    server: NodePlan
    workers: tuple[NodePlan, ...] = ()

    __hash__ = None  # type: ignore[assignment]

    @property
    def nodes(self) -> tuple[NodePlan, ...]:
        """Return every node in creation order, server first."""
        return (self.server, *self.workers)

    def to_builtins(self, *, redact: bool = True) -> dict[str, typ.Any]:
        """Return a JSON-ready view of the plan."""
        return {
            "cluster": self.cluster_name,
            "network": self.network,
            "nodes": [node.to_builtins(redact=redact) for node in self.nodes],
        }


def _labels(cluster_name: str, role: NodeRole, created: str) -> dict[str, str]:
    return {
        "app": "k3d",
        "component": str(role),
        "created": created,
        "cluster": cluster_name,
    }


def _server_ports(
    node_map: cabc.Mapping[str, cabc.Sequence[str]], name: str, api: ApiPort
) -> PublishedPorts:
    specs = merge_port_specs(node_map, NodeRole.SERVER, name)
    if api.binding() not in specs:
        specs.append(api.binding())
    return create_published_ports(specs)


def _worker_ports(
    node_map: cabc.Mapping[str, cabc.Sequence[str]],
    name: str,
    index: int,
    auto_offset: int,
) -> PublishedPorts:
    ports = create_published_ports(merge_port_specs(node_map, NodeRole.WORKER, name))
    if auto_offset > 0:
        return ports.offset(index + auto_offset)
    return ports


def plan_cluster(
    config: ClusterConfig,
    *,
    token_factory: cabc.Callable[[], str] = generate_token,
    created: dt.datetime | None = None,
) -> ClusterPlan:
    """Plan the containers of a new cluster.

    Parameters
    ----------
    config : ClusterConfig
        Cluster options.
    token_factory : Callable[[], str], optional
        Source of the cluster secret and join token shared with workers.
    created : datetime | None, optional
        Timestamp recorded in the ``created`` label; defaults to now (UTC).

    Returns
    -------
    ClusterPlan
        One server and ``config.workers`` workers with their published ports.

    Raises
    ------
    InvalidHostnameError
        If the cluster name is invalid.
    ClusterConfigError
        If counts, offsets or the API port are invalid.
    InvalidPortSpecError
        If a publish spec is invalid.

    """
    api = config.validate()
    names = all_container_names(config.name, SERVER_COUNT, config.workers)
    node_map = map_nodes_to_port_specs(config.publish, names)
    created_label = (created or dt.datetime.now(dt.UTC)).strftime("%Y-%m-%d %H:%M:%S")
    image = config.qualified_image
    restart = "unless-stopped" if config.auto_restart else None

    join_env: tuple[str, ...] = ()
    if config.workers > 0:
        join_env = tuple(f"{key}={token_factory()}" for key in _SECRET_ENV_KEYS)

    server_name, *worker_names = names
    command = ["server", "--https-listen-port", api.port]
    if api.host:
        command.extend(["--tls-san", api.host])
    server = NodePlan(
        name=server_name,
        role=NodeRole.SERVER,
        image=image,
        command=(*command, *config.server_args),
        env=(f"K3S_KUBECONFIG_OUTPUT={KUBECONFIG_OUTPUT}", *config.env, *join_env),
        labels=_labels(config.name, NodeRole.SERVER, created_label),
        published=_server_ports(node_map, server_name, api),
        volumes=config.volumes,
        restart=restart,
    )

    workers = tuple(
        NodePlan(
            name=name,
            role=NodeRole.WORKER,
            image=image,
            command=("agent",),
            env=(*join_env, f"K3S_URL=https://{server_name}:{api.port}"),
            labels=_labels(config.name, NodeRole.WORKER, created_label),
            published=_worker_ports(node_map, name, index, config.port_auto_offset),
            volumes=config.volumes,
            tmpfs=_WORKER_TMPFS,
            restart=restart,
        )
        for index, name in enumerate(worker_names)
    )

    log_info(
        logger,
        "Planned cluster [%s] with %d worker(s) on network %s",
        config.name,
        len(workers),
        network_name(config.name),
    )
    return ClusterPlan(
        cluster_name=config.name,
        network=network_name(config.name),
        server=server,
        workers=workers,
    )
