"""Parsing of the ``--api-port`` option."""

from __future__ import annotations

import socket

import msgspec

from k3dctl.errors import ClusterConfigError
from k3dctl.ports.types import MAX_PORT, MIN_PORT

_API_PORT_CONSTRAINT = f"Must be 'port' or 'host:port' with port {MIN_PORT}-{MAX_PORT}"


class ApiPort(msgspec.Struct, frozen=True):
    """Kubernetes API server endpoint published by the server node.

    Attributes
    ----------
    port
        Port the API server listens on inside the container and on the host.
    host
        Optional host name or address clients use to reach the API; added to
        the server certificate's SANs.

    """

    port: str
    host: str = ""

    def binding(self) -> str:
        """Return the binding portion publishing the API port on all interfaces."""
        return f"0.0.0.0:{self.port}:{self.port}/tcp"


def _resolve(host: str) -> None:
    try:
        socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError) as exc:
        raise ClusterConfigError.unresolvable_host(host, str(exc)) from exc


def parse_api_port(spec: str) -> ApiPort:
    """Parse ``port`` or ``host:port``.

    The host, when present, must resolve locally.

    Raises
    ------
    ClusterConfigError
        If the format is wrong, the host does not resolve, or the port is not
        an integer within 0-65535.

    """
    host, sep, port = spec.rpartition(":")
    if sep and (not host or ":" in host):
        raise ClusterConfigError.invalid_parameter(
            "api-port", spec, _API_PORT_CONSTRAINT
        )
    if host:
        _resolve(host)
    if not (port.isascii() and port.isdigit()) or int(port) > MAX_PORT:
        raise ClusterConfigError.invalid_parameter(
            "api-port", spec, _API_PORT_CONSTRAINT
        )
    return ApiPort(port=str(int(port)), host=host)
