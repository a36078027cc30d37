"""Value types for published container ports."""

from __future__ import annotations

import enum

import msgspec

from k3dctl.errors import PortParseError

MIN_PORT = 0
MAX_PORT = 65535
MIN_CONTAINER_PORT = 1


class Protocol(enum.StrEnum):
    """Transport protocol of an exposed port."""

    TCP = "tcp"
    UDP = "udp"


class ExposedPort(msgspec.Struct, frozen=True, order=True):
    """A container port and its protocol, e.g. ``80/tcp``.

    Attributes
    ----------
    port
        Container port, 1-65535.
    protocol
        Transport protocol, TCP unless stated otherwise.

    """

    port: int
    protocol: Protocol = Protocol.TCP

    def __post_init__(self) -> None:
        """Reject container ports outside 1-65535."""
        if not MIN_CONTAINER_PORT <= self.port <= MAX_PORT:
            raise PortParseError(
                str(self.port),
                f"container port must be between {MIN_CONTAINER_PORT} and "
                f"{MAX_PORT}",
            )

    def __str__(self) -> str:
        """Render the engine key, ``<port>/<protocol>``."""
        return f"{self.port}/{self.protocol}"


class PortBinding(msgspec.Struct, frozen=True):
    """Host side of a published port.

    Both fields are strings, as the engine API carries them. An empty
    ``host_ip`` binds every interface; an empty ``host_port`` lets the
    engine pick a free port.
    """

    host_ip: str = ""
    host_port: str = ""

    def shifted(self, delta: int) -> PortBinding:
        """Return a copy with the host port increased by ``delta``."""
        if not self.host_port:
            return self
        return PortBinding(self.host_ip, str(int(self.host_port) + delta))


class PortMapping(msgspec.Struct, frozen=True):
    """One parsed binding: the exposed container port plus its host binding."""

    port: ExposedPort
    binding: PortBinding
