"""Port publishing: parse, resolve, merge and build ``--publish`` specs.

The pieces run in this order during a cluster create:

1. ``map_nodes_to_port_specs`` validates every spec and groups binding
   portions by node specifier.
2. ``merge_port_specs`` picks the bindings for one node from its role groups
   and its container name.
3. ``create_published_ports`` turns those bindings into exposed ports and
   host bindings; workers may then apply ``PublishedPorts.offset``.
"""

from __future__ import annotations

from k3dctl.ports.api import ApiPort, parse_api_port
from k3dctl.ports.merge import ROLE_GROUPS, merge_port_specs
from k3dctl.ports.published import PublishedPorts, create_published_ports
from k3dctl.ports.resolver import ROLE_SPECIFIERS, map_nodes_to_port_specs
from k3dctl.ports.spec import (
    DEFAULT_NODES,
    parse_binding,
    parse_spec,
    validate_port_specs,
)
from k3dctl.ports.types import ExposedPort, PortBinding, PortMapping, Protocol

__all__ = [
    "DEFAULT_NODES",
    "ROLE_GROUPS",
    "ROLE_SPECIFIERS",
    "ApiPort",
    "ExposedPort",
    "PortBinding",
    "PortMapping",
    "Protocol",
    "PublishedPorts",
    "create_published_ports",
    "map_nodes_to_port_specs",
    "merge_port_specs",
    "parse_api_port",
    "parse_binding",
    "parse_spec",
    "validate_port_specs",
]
