"""Shared fixtures for k3dctl tests."""

from __future__ import annotations

import typing as typ

import pytest

from tests.helpers import FakeDocker

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class InstallDocker(typ.Protocol):
    """Factory installing a :class:`FakeDocker`."""

    def __call__(
        self,
        *,
        containers: cabc.Sequence[str] = (),
        fail_on: tuple[str, str] | None = None,
    ) -> FakeDocker:
        """Patch subprocess.run and shutil.which, returning the fake."""


@pytest.fixture
def install_docker(monkeypatch: pytest.MonkeyPatch) -> InstallDocker:
    """Return a factory patching subprocess.run with a :class:`FakeDocker`."""

    def _install(
        *,
        containers: cabc.Sequence[str] = (),
        fail_on: tuple[str, str] | None = None,
    ) -> FakeDocker:
        fake = FakeDocker(containers=containers, fail_on=fail_on)
        monkeypatch.setattr("subprocess.run", fake)
        monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
        return fake

    return _install
