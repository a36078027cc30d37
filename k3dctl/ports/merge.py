"""Merge role-group and node-specific publish specs for a single node."""

from __future__ import annotations

import types
import typing as typ

from k3dctl.naming import NodeRole

if typ.TYPE_CHECKING:
    import collections.abc as cabc

# Specifier keywords applying to each role, in the order they are merged.
ROLE_GROUPS: cabc.Mapping[NodeRole, tuple[str, ...]] = types.MappingProxyType({
    NodeRole.WORKER: ("all", "workers"),
    NodeRole.SERVER: ("all", "server", "master"),
})


def merge_port_specs(
    node_map: cabc.Mapping[str, cabc.Sequence[str]],
    role: NodeRole | str,
    name: str,
) -> list[str]:
    """Return the binding portions to publish on one node.

    Specs registered under the role's groups come first, in the order of
    ``ROLE_GROUPS``, followed by specs registered under the node's own
    container name. Exact duplicates keep their first position.

    Parameters
    ----------
    node_map : Mapping[str, Sequence[str]]
        Output of :func:`k3dctl.ports.resolver.map_nodes_to_port_specs`.
    role : NodeRole | str
        Role of the node being created.
    name : str
        Container name of the node being created.

    Returns
    -------
    list[str]
        Deduplicated binding portions.

    Examples
    --------
    >>> node_map = {"all": ["80:80"], "k3d-c-worker-0": ["90:90", "80:80"]}
    >>> merge_port_specs(node_map, NodeRole.WORKER, "k3d-c-worker-0")
    ['80:80', '90:90']

    """
    merged: dict[str, None] = {}
    for key in (*ROLE_GROUPS[NodeRole(role)], name):
        for spec in node_map.get(key, ()):
            merged.setdefault(spec, None)
    return list(merged)
