"""Docker CLI operations for cluster networks and node containers.

All functions shell out to ``docker`` with a timeout and wrap failures in
:class:`~k3dctl.errors.ContainerRuntimeError`. Containers are found again
through the ``app=k3d`` and ``cluster=<name>`` labels set at creation.

Public API
----------
- ``require_exe``: Verify the docker CLI is installed.
- ``docker_run_args``: Render the ``docker run`` argv for a node plan.
- ``create_cluster``: Create the network and every node of a plan.
- ``cluster_exists``: Check whether a cluster's server container exists.
- ``list_cluster_containers``: List a cluster's containers.
- ``list_clusters``: Group every k3d container by cluster.
- ``delete_cluster``/``stop_cluster``/``start_cluster``: Lifecycle helpers.

Examples
--------
Create a cluster from a plan:

    plan = plan_cluster(ClusterConfig(name="dev", workers=2))
    create_cluster(plan)

"""

from __future__ import annotations

import dataclasses
import shutil
import subprocess
import typing as typ

import msgspec

from k3dctl.errors import ContainerRuntimeError, ExecutableNotFoundError
from k3dctl.logging import get_logger, log_error, log_info, log_warning
from k3dctl.naming import NodeRole, network_name

if typ.TYPE_CHECKING:
    from k3dctl.plan import ClusterPlan, NodePlan

logger = get_logger(__name__)

# Default timeout for docker subprocess operations (seconds)
_DOCKER_TIMEOUT = 120
# Image pulls happen inside `docker run` on first use.
_DOCKER_RUN_TIMEOUT = 600


class ContainerSummary(msgspec.Struct, rename="pascal"):
    """One line of ``docker ps --format '{{json .}}'``."""

    names: str
    state: str = ""
    image: str = ""
    labels: str = ""

    @property
    def label_map(self) -> dict[str, str]:
        """Return the comma-separated ``key=value`` labels as a dict."""
        pairs = (item.partition("=") for item in self.labels.split(",") if item)
        return {key: value for key, _, value in pairs}

    @property
    def role(self) -> str:
        """Return the ``component`` label (``server`` or ``worker``)."""
        return self.label_map.get("component", "")

    @property
    def cluster(self) -> str:
        """Return the ``cluster`` label."""
        return self.label_map.get("cluster", "")


@dataclasses.dataclass(frozen=True, slots=True)
class ClusterInfo:
    """A cluster found through its labelled containers."""

    name: str
    server: ContainerSummary
    workers: tuple[ContainerSummary, ...] = ()

    @property
    def status(self) -> str:
        """Classify the cluster as running, stopped or unhealthy.

        The cluster is unhealthy when any worker state differs from the
        server state; an exited server means a stopped cluster.
        """
        if any(worker.state != self.server.state for worker in self.workers):
            return "unhealthy"
        if self.server.state == "exited":
            return "stopped"
        return self.server.state

    @property
    def workers_running(self) -> int:
        """Return how many workers are running."""
        return sum(1 for worker in self.workers if worker.state == "running")


def require_exe(name: str) -> None:
    """Verify a CLI tool is available in PATH.

    Raises
    ------
    ExecutableNotFoundError
        If the executable is not found in PATH.

    """
    if shutil.which(name) is None:
        raise ExecutableNotFoundError.missing(name)


def _run_docker(
    args: list[str],
    *,
    action: str,
    target: str,
    timeout: float = _DOCKER_TIMEOUT,
) -> str:
    """Run a docker command and return its stripped stdout."""
    try:
        result = subprocess.run(  # noqa: S603
            # docker is expected on PATH; shell=False mitigates injection
            ["docker", *args],  # noqa: S607
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ContainerRuntimeError.timed_out(action, timeout) from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or e
        raise ContainerRuntimeError.failed(action, target, detail) from e
    except OSError as e:
        raise ContainerRuntimeError.failed(action, target, e) from e
    return (result.stdout or "").strip()


def docker_run_args(node: NodePlan, network: str) -> list[str]:
    """Render the ``docker run`` arguments (without ``docker``) for a node."""
    args = [
        "run",
        "--detach",
        "--name",
        node.name,
        "--hostname",
        node.name,
        "--network",
        network,
        "--network-alias",
        node.name,
        "--privileged",
    ]
    for key, value in node.labels.items():
        args.extend(["--label", f"{key}={value}"])
    for item in node.env:
        args.extend(["--env", item])
    for volume in node.volumes:
        args.extend(["--volume", volume])
    for path in node.tmpfs:
        args.extend(["--tmpfs", path])
    if node.restart:
        args.extend(["--restart", node.restart])
    args.extend(node.published.to_cli_args())
    args.append(node.image)
    args.extend(node.command)
    return args


def create_network(name: str) -> str:
    """Create a bridge network labelled for k3d and return its ID."""
    return _run_docker(
        ["network", "create", "--label", "app=k3d", name],
        action="network create",
        target=name,
    )


def remove_network(name: str) -> None:
    """Remove a network."""
    _run_docker(["network", "rm", name], action="network rm", target=name)


def run_container(node: NodePlan, network: str) -> str:
    """Start a node container and return its ID."""
    log_info(logger, "Creating %s %s using %s", node.role, node.name, node.image)
    return _run_docker(
        docker_run_args(node, network),
        action="run",
        target=node.name,
        timeout=_DOCKER_RUN_TIMEOUT,
    )


def remove_container(name: str) -> None:
    """Force-remove a container."""
    _run_docker(["rm", "--force", name], action="rm", target=name)


def _list_containers(labels: list[str], target: str) -> list[ContainerSummary]:
    args = ["ps", "--all"]
    for label in ["app=k3d", *labels]:
        args.extend(["--filter", f"label={label}"])
    args.extend(["--format", "{{json .}}"])
    output = _run_docker(args, action="ps", target=target)
    try:
        return [
            msgspec.json.decode(line, type=ContainerSummary)
            for line in output.splitlines()
            if line.strip()
        ]
    except msgspec.DecodeError as e:
        raise ContainerRuntimeError.failed("ps", target, e) from e


def list_cluster_containers(cluster_name: str) -> list[ContainerSummary]:
    """List every container of a cluster, running or not."""
    return _list_containers([f"cluster={cluster_name}"], cluster_name)


def list_clusters() -> list[ClusterInfo]:
    """Return every cluster with a server container, sorted by name.

    Workers whose cluster has no server are not reported.
    """
    containers = _list_containers([], "all clusters")
    servers: dict[str, ContainerSummary] = {}
    workers: dict[str, list[ContainerSummary]] = {}
    for container in containers:
        if container.role == NodeRole.SERVER:
            servers.setdefault(container.cluster, container)
        elif container.role == NodeRole.WORKER:
            workers.setdefault(container.cluster, []).append(container)
    return [
        ClusterInfo(name, server, tuple(workers.get(name, ())))
        for name, server in sorted(servers.items())
    ]


def _split_roles(
    containers: list[ContainerSummary],
) -> tuple[list[ContainerSummary], list[ContainerSummary]]:
    servers = [c for c in containers if c.role == NodeRole.SERVER]
    workers = [c for c in containers if c.role == NodeRole.WORKER]
    return servers, workers


def cluster_exists(cluster_name: str) -> bool:
    """Return True when the cluster has a server container."""
    servers, _ = _split_roles(list_cluster_containers(cluster_name))
    return bool(servers)


def _owned_names(cluster_name: str) -> set[str]:
    try:
        return {c.names for c in list_cluster_containers(cluster_name)}
    except ContainerRuntimeError as e:
        log_warning(logger, "Could not list %s during rollback: %s", cluster_name, e)
        return set()


def _rollback(cluster_name: str, attempted: list[str], network: str | None) -> None:
    owned = _owned_names(cluster_name) if attempted else set()
    for name in reversed(attempted):
        if name not in owned:
            continue
        try:
            remove_container(name)
        except ContainerRuntimeError as e:
            log_warning(logger, "Could not remove %s during rollback: %s", name, e)
    if network is not None:
        try:
            remove_network(network)
        except ContainerRuntimeError as e:
            log_warning(logger, "Could not remove network %s: %s", network, e)


def create_cluster(plan: ClusterPlan) -> None:
    """Create the network and start every node of ``plan``.

    Creation is all-or-nothing: when any step fails, containers started so
    far and the network are removed before the error propagates. Only
    containers labelled with the cluster name are removed, so a container
    that already held one of the names survives.

    Raises
    ------
    ContainerRuntimeError
        If a docker command fails.

    """
    attempted: list[str] = []
    network: str | None = None
    try:
        create_network(plan.network)
        network = plan.network
        for node in plan.nodes:
            # A failed `docker run` can leave a created but stopped container.
            attempted.append(node.name)
            run_container(node, plan.network)
    except ContainerRuntimeError as e:
        log_error(logger, "Failed to create cluster [%s]: %s", plan.cluster_name, e)
        _rollback(plan.cluster_name, attempted, network)
        raise
    log_info(logger, "Created cluster [%s]", plan.cluster_name)


def delete_cluster(cluster_name: str) -> None:
    """Remove a cluster's workers, then its server, then its network.

    Worker and network removal failures are logged and skipped; a server
    removal failure is raised.
    """
    servers, workers = _split_roles(list_cluster_containers(cluster_name))
    log_info(
        logger, "Removing cluster [%s] with %d worker(s)", cluster_name, len(workers)
    )
    for worker in workers:
        try:
            remove_container(worker.names)
        except ContainerRuntimeError as e:
            log_warning(logger, "%s", e)
    for server in servers:
        remove_container(server.names)
    try:
        remove_network(network_name(cluster_name))
    except ContainerRuntimeError as e:
        log_warning(
            logger, "Couldn't delete cluster network for %s: %s", cluster_name, e
        )


def stop_cluster(cluster_name: str) -> None:
    """Stop workers first, then the server."""
    servers, workers = _split_roles(list_cluster_containers(cluster_name))
    for worker in workers:
        try:
            _run_docker(["stop", worker.names], action="stop", target=worker.names)
        except ContainerRuntimeError as e:
            log_warning(logger, "%s", e)
    for server in servers:
        _run_docker(["stop", server.names], action="stop", target=server.names)
    log_info(logger, "Stopped cluster [%s]", cluster_name)


def start_cluster(cluster_name: str) -> None:
    """Start the server first, then the workers."""
    servers, workers = _split_roles(list_cluster_containers(cluster_name))
    for server in servers:
        _run_docker(["start", server.names], action="start", target=server.names)
    for worker in workers:
        try:
            _run_docker(["start", worker.names], action="start", target=worker.names)
        except ContainerRuntimeError as e:
            log_warning(logger, "%s", e)
    log_info(logger, "Started cluster [%s]", cluster_name)
