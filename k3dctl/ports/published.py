"""Exposed ports and host bindings handed to container creation.

:class:`PublishedPorts` is immutable. ``add_port`` and ``offset`` return new
instances, so one value built from a role's specs can serve as the template
for every worker before each worker applies its own offset.
"""

from __future__ import annotations

import dataclasses
import types
import typing as typ

from k3dctl.errors import PortParseError
from k3dctl.ports.spec import parse_binding

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from k3dctl.ports.types import ExposedPort, PortBinding, PortMapping


@dataclasses.dataclass(frozen=True, slots=True)
class PublishedPorts:
    """Exposed container ports and their host bindings.

    Attributes
    ----------
    exposed_ports
        Every container port the node exposes.
    port_bindings
        Host bindings per exposed port, in the order they were added. Each
        key is also in ``exposed_ports``.

    """

    exposed_ports: frozenset[ExposedPort] = frozenset()
    port_bindings: cabc.Mapping[ExposedPort, tuple[PortBinding, ...]] = (
        dataclasses.field(default_factory=lambda: types.MappingProxyType({}))
    )

    def __post_init__(self) -> None:
        """Freeze the bindings and check every bound port is exposed."""
        object.__setattr__(
            self, "port_bindings", types.MappingProxyType(dict(self.port_bindings))
        )
        unexposed = set(self.port_bindings) - self.exposed_ports
        if unexposed:
            ports = ", ".join(sorted(str(port) for port in unexposed))
            raise PortParseError(ports, "bound port is not exposed")

    def __hash__(self) -> int:
        """Hash the exposed ports and the bindings in port order."""
        return hash((self.exposed_ports, tuple(sorted(self.port_bindings.items()))))

    def _with_mappings(self, mappings: cabc.Iterable[PortMapping]) -> PublishedPorts:
        exposed = set(self.exposed_ports)
        bindings: dict[ExposedPort, tuple[PortBinding, ...]] = dict(self.port_bindings)
        for mapping in mappings:
            exposed.add(mapping.port)
            bindings[mapping.port] = (*bindings.get(mapping.port, ()), mapping.binding)
        return PublishedPorts(frozenset(exposed), bindings)

    def add_port(self, binding: str) -> PublishedPorts:
        """Return a copy with one more binding.

        If the container port is already exposed, the new host binding is
        appended to its existing bindings.

        Raises
        ------
        PortParseError
            If ``binding`` is not a valid binding portion.

        """
        return self._with_mappings([parse_binding(binding)])

    def offset(self, delta: int) -> PublishedPorts:
        """Return a copy with every host port increased by ``delta``.

        Bindings without a host port are left for the engine to assign.
        """
        shifted = {
            port: tuple(binding.shifted(delta) for binding in bindings)
            for port, bindings in self.port_bindings.items()
        }
        return PublishedPorts(self.exposed_ports, shifted)

    def to_engine(self) -> dict[str, dict[str, typ.Any]]:
        """Render the Docker Engine API ``ExposedPorts``/``PortBindings`` pair."""
        return {
            "ExposedPorts": {str(port): {} for port in sorted(self.exposed_ports)},
            "PortBindings": {
                str(port): [
                    {"HostIp": binding.host_ip, "HostPort": binding.host_port}
                    for binding in self.port_bindings[port]
                ]
                for port in sorted(self.port_bindings)
            },
        }

    def to_cli_args(self) -> list[str]:
        """Render ``docker run`` ``-p`` arguments, two list items per binding."""
        args: list[str] = []
        for port in sorted(self.exposed_ports):
            for binding in self.port_bindings.get(port, ()):
                args.extend(["-p", _publish_flag(port, binding)])
            if port not in self.port_bindings:
                args.extend(["--expose", str(port)])
        return args


def _publish_flag(port: ExposedPort, binding: PortBinding) -> str:
    host_ip = binding.host_ip
    if ":" in host_ip:
        host_ip = f"[{host_ip}]"
    if host_ip:
        return f"{host_ip}:{binding.host_port}:{port}"
    if binding.host_port:
        return f"{binding.host_port}:{port}"
    return str(port)


def create_published_ports(bindings: cabc.Iterable[str]) -> PublishedPorts:
    """Build published ports from ``ip:hostPort:containerPort/proto`` bindings.

    An empty input yields an empty :class:`PublishedPorts`.

    Raises
    ------
    PortParseError
        If any binding is rejected by the grammar.

    """
    return PublishedPorts()._with_mappings(parse_binding(b) for b in bindings)
