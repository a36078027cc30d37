"""Parsing and validation of ``--publish`` port specifications.

A publish spec is a binding portion followed by optional node specifiers::

    [[host:]hostPort:]containerPort[/protocol][@node-specifier]*

Examples
--------
>>> parse_spec("0.0.0.0:8080:80/tcp@worker-1@worker-2")
('0.0.0.0:8080:80/tcp', ['worker-1', 'worker-2'])
>>> parse_spec("80:8080")
('80:8080', ['server'])

"""

from __future__ import annotations

import ipaddress
import typing as typ

from k3dctl.errors import InvalidHostnameError, InvalidPortSpecError, PortParseError
from k3dctl.hostname import validate_hostname
from k3dctl.ports.types import (
    MAX_PORT,
    MIN_CONTAINER_PORT,
    MIN_PORT,
    ExposedPort,
    PortBinding,
    PortMapping,
    Protocol,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

NODE_SEPARATOR = "@"

# Target of specs without an explicit node specifier.
DEFAULT_NODES = "server"


def _split_parts(binding: str) -> tuple[str, str, str]:
    """Split a binding into ``(ip, host_port, container_port)`` strings."""
    parts = binding.split(":")
    container_port = parts[-1]
    if len(parts) == 1:
        return "", "", container_port
    if len(parts) == 2:  # noqa: PLR2004
        return "", parts[0], container_port
    # Anything longer is an IPv6 address followed by two ports.
    return ":".join(parts[:-2]), parts[-2], container_port


def _split_protocol(binding: str, raw: str) -> tuple[str, Protocol]:
    port, _, protocol = raw.partition("/")
    if not protocol:
        return port, Protocol.TCP
    try:
        return port, Protocol(protocol.lower())
    except ValueError as exc:
        msg = f"protocol must be one of tcp, udp; got '{protocol}'"
        raise PortParseError(binding, msg) from exc


def _parse_ip(binding: str, raw_ip: str) -> str:
    ip = raw_ip
    if ip.startswith("[") and ip.endswith("]"):
        ip = ip[1:-1]
    try:
        ipaddress.ip_address(ip)
    except ValueError as exc:
        msg = f"host must be an IP literal, got '{raw_ip}'"
        raise PortParseError(binding, msg) from exc
    return ip


def _parse_port(binding: str, raw: str, *, what: str, minimum: int) -> int:
    if "-" in raw:
        raise PortParseError(binding, f"{what} ranges are not supported")
    if not (raw.isascii() and raw.isdigit()):
        raise PortParseError(binding, f"{what} '{raw}' is not an integer")
    port = int(raw)
    if not minimum <= port <= MAX_PORT:
        msg = f"{what} {port} outside valid range {minimum}-{MAX_PORT}"
        raise PortParseError(binding, msg)
    return port


def parse_binding(binding: str) -> PortMapping:
    """Parse a binding portion into a :class:`PortMapping`.

    Parameters
    ----------
    binding : str
        ``[[host:]hostPort:]containerPort[/protocol]``.

    Returns
    -------
    PortMapping
        The exposed container port and its host binding. Host IP and host
        port are empty strings when omitted.

    Raises
    ------
    PortParseError
        If any part of the binding breaks the grammar or a port is out of
        range.

    """
    raw_ip, raw_host_port, raw_container = _split_parts(binding)
    raw_container, protocol = _split_protocol(binding, raw_container)
    if not raw_container:
        raise PortParseError(binding, "no container port specified")

    container_port = _parse_port(
        binding, raw_container, what="container port", minimum=MIN_CONTAINER_PORT
    )
    host_port = ""
    if raw_host_port:
        host_port = str(
            _parse_port(binding, raw_host_port, what="host port", minimum=MIN_PORT)
        )
    host_ip = _parse_ip(binding, raw_ip) if raw_ip else ""

    return PortMapping(
        port=ExposedPort(container_port, protocol),
        binding=PortBinding(host_ip=host_ip, host_port=host_port),
    )


def split_spec(spec: str) -> tuple[str, list[str]]:
    """Split a publish spec into its binding and the explicit node specifiers."""
    binding, *nodes = spec.split(NODE_SEPARATOR)
    return binding, nodes


def parse_spec(spec: str) -> tuple[str, list[str]]:
    """Split a publish spec, applying the default node specifier.

    Parameters
    ----------
    spec : str
        A publish spec such as ``"80:8080@workers"``.

    Returns
    -------
    tuple[str, list[str]]
        The binding portion and the node specifiers in the order given, or
        ``[DEFAULT_NODES]`` when the spec names none.

    """
    binding, nodes = split_spec(spec)
    return binding, nodes or [DEFAULT_NODES]


def validate_port_spec(spec: str) -> None:
    """Validate one publish spec.

    Raises
    ------
    InvalidPortSpecError
        If the binding portion fails the grammar or a node specifier is not a
        valid hostname.

    """
    binding, nodes = split_spec(spec)
    try:
        parse_binding(binding)
    except PortParseError as exc:
        raise InvalidPortSpecError.invalid_binding(spec, binding, exc.reason) from exc

    for node in nodes:
        try:
            validate_hostname(node)
        except InvalidHostnameError as exc:
            raise InvalidPortSpecError.invalid_node_specifier(
                spec, node, str(exc)
            ) from exc


def validate_port_specs(specs: cabc.Iterable[str]) -> None:
    """Validate every publish spec, stopping at the first failure."""
    for spec in specs:
        validate_port_spec(spec)
