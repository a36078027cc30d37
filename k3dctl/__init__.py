"""Run multi-node k3s clusters as Docker containers.

The primary entrypoints are:

- plan_cluster: Resolve a ClusterConfig into per-node container plans
- create_cluster: Start the network and containers of a plan
- delete_cluster / stop_cluster / start_cluster: Manage existing clusters

Port publishing lives in ``k3dctl.ports``; lower-level Docker helpers remain
importable from ``k3dctl.runtime``.
"""

from __future__ import annotations

from k3dctl.config import ClusterConfig
from k3dctl.errors import (
    ClusterConfigError,
    ContainerRuntimeError,
    InvalidHostnameError,
    InvalidPortSpecError,
    K3dctlError,
    PortParseError,
)
from k3dctl.plan import ClusterPlan, NodePlan, plan_cluster
from k3dctl.runtime import create_cluster, delete_cluster, start_cluster, stop_cluster

__all__ = [
    "ClusterConfig",
    "ClusterConfigError",
    "ClusterPlan",
    "ContainerRuntimeError",
    "InvalidHostnameError",
    "InvalidPortSpecError",
    "K3dctlError",
    "NodePlan",
    "PortParseError",
    "create_cluster",
    "delete_cluster",
    "plan_cluster",
    "start_cluster",
    "stop_cluster",
]
