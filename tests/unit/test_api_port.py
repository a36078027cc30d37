"""Unit tests for ``--api-port`` parsing."""

from __future__ import annotations

import socket

import pytest

from k3dctl.errors import ClusterConfigError
from k3dctl.ports.api import ApiPort, parse_api_port


@pytest.fixture
def resolved_hosts(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Resolve ``localhost`` and ``api.example.test`` only."""
    lookups: list[str] = []

    def _getaddrinfo(host: str, port: object) -> list[object]:
        lookups.append(host)
        if host not in {"localhost", "api.example.test"}:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", 0))]

    monkeypatch.setattr("socket.getaddrinfo", _getaddrinfo)
    return lookups


def test_port_only(resolved_hosts: list[str]) -> None:
    """A bare port has no host and triggers no lookup."""
    assert parse_api_port("6443") == ApiPort(port="6443")
    assert resolved_hosts == []


def test_host_and_port(resolved_hosts: list[str]) -> None:
    """The host is resolved and kept verbatim."""
    assert parse_api_port("api.example.test:6550") == ApiPort(
        port="6550", host="api.example.test"
    )
    assert resolved_hosts == ["api.example.test"]


def test_port_is_normalized(resolved_hosts: list[str]) -> None:
    """Leading zeros are dropped."""
    assert parse_api_port("06443").port == "6443"


@pytest.mark.parametrize(
    "spec",
    ["", "abc", "65536", "-1", ":6443", "a:b:6443", "localhost:", "localhost:x"],
)
def test_rejects_malformed(resolved_hosts: list[str], spec: str) -> None:
    """Anything but ``port`` or ``host:port`` with a valid port is rejected."""
    with pytest.raises(ClusterConfigError, match="Must be 'port' or 'host:port'"):
        parse_api_port(spec)


def test_rejects_unresolvable_host(resolved_hosts: list[str]) -> None:
    """Hosts that do not resolve are reported."""
    with pytest.raises(ClusterConfigError, match="Cannot resolve API host 'nowhere'"):
        parse_api_port("nowhere:6443")


def test_binding_publishes_on_all_interfaces() -> None:
    """The API binding always uses 0.0.0.0 and tcp."""
    assert ApiPort(port="6550", host="api.example.test").binding() == (
        "0.0.0.0:6550:6550/tcp"
    )
