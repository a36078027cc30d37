"""Unit tests for ClusterConfig validation."""

from __future__ import annotations

import pytest

from k3dctl.config import DEFAULT_IMAGE, ClusterConfig
from k3dctl.errors import ClusterConfigError, InvalidHostnameError
from k3dctl.ports.api import ApiPort


class TestValidate:
    """Tests for ClusterConfig.validate."""

    def test_defaults_are_valid(self) -> None:
        """The default config validates and returns the API port."""
        assert ClusterConfig().validate() == ApiPort(port="6443")

    def test_invalid_name(self) -> None:
        """Cluster names must be hostnames."""
        with pytest.raises(InvalidHostnameError):
            ClusterConfig(name="dev_cluster").validate()

    @pytest.mark.parametrize(
        ("config", "message"),
        [
            (ClusterConfig(workers=-1), "Invalid workers '-1'. Must be >= 0"),
            (
                ClusterConfig(port_auto_offset=-2),
                "Invalid port-auto-offset '-2'. Must be >= 0",
            ),
            (ClusterConfig(image=""), "Invalid image ''. Must be non-empty"),
            (ClusterConfig(api_port="70000"), "Invalid api-port '70000'."),
        ],
    )
    def test_invalid_values(self, config: ClusterConfig, message: str) -> None:
        """Each invalid field is named in the error."""
        with pytest.raises(ClusterConfigError) as excinfo:
            config.validate()
        assert str(excinfo.value).startswith(message), (
            f"Unexpected message: {excinfo.value}"
        )

    def test_config_is_frozen(self) -> None:
        """Configs are immutable."""
        config = ClusterConfig()
        with pytest.raises(AttributeError):
            config.workers = 3  # type: ignore[misc]


@pytest.mark.parametrize(
    ("image", "expected"),
    [
        (DEFAULT_IMAGE, DEFAULT_IMAGE),
        ("rancher/k3s:v1.31.4-k3s1", "docker.io/rancher/k3s:v1.31.4-k3s1"),
        ("k3s", "docker.io/k3s"),
        ("ghcr.io/acme/k3s:dev", "ghcr.io/acme/k3s:dev"),
        ("localhost/k3s:dev", "localhost/k3s:dev"),
        ("registry:5000/k3s", "registry:5000/k3s"),
    ],
)
def test_qualified_image(image: str, expected: str) -> None:
    """Images without a registry get the default one."""
    assert ClusterConfig(image=image).qualified_image == expected
