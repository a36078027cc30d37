"""Resolve publish specs to the node specifiers they target."""

from __future__ import annotations

import typing as typ

from k3dctl.logging import get_logger, log_debug, log_warning
from k3dctl.ports.spec import parse_spec, validate_port_specs

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

# Role keywords accepted in place of a container name.
ROLE_SPECIFIERS: tuple[str, ...] = ("all", "workers", "server", "master")


def map_nodes_to_port_specs(
    specs: cabc.Sequence[str], created_nodes: cabc.Iterable[str]
) -> dict[str, list[str]]:
    """Map node specifiers to the binding portions published on them.

    Every spec is validated first; an invalid spec aborts the whole mapping.
    Node specifiers that are neither a role keyword nor one of
    ``created_nodes`` are logged as a warning and dropped, while the other
    specifiers of the same spec are still registered.

    Parameters
    ----------
    specs : Sequence[str]
        Publish specs as given on the command line.
    created_nodes : Iterable[str]
        Names of every container the cluster create will start.

    Returns
    -------
    dict[str, list[str]]
        Binding portions per specifier, in input order and with duplicates
        kept.

    Raises
    ------
    InvalidPortSpecError
        If any spec fails validation.

    """
    validate_port_specs(specs)

    valid_specifiers = {*ROLE_SPECIFIERS, *created_nodes}
    node_map: dict[str, list[str]] = {}

    for spec in specs:
        binding, nodes = parse_spec(spec)
        for node in nodes:
            if node not in valid_specifiers:
                log_warning(
                    logger,
                    "Unknown node-specifier [%s] in port mapping entry [%s]",
                    node,
                    spec,
                )
                continue
            node_map.setdefault(node, []).append(binding)

    log_debug(logger, "Resolved port specs per node: %r", node_map)
    return node_map
