"""Test doubles shared by the unit and behavioural tests.

Docker is never invoked: :class:`FakeDocker` stands in for
``subprocess.run``, records every argv and answers ``docker ps`` from a list
of canned containers.
"""

from __future__ import annotations

import itertools
import subprocess
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    import collections.abc as cabc


def ps_line(name: str, role: str, cluster: str, state: str = "running") -> str:
    """Render one ``docker ps --format '{{json .}}'`` line for a node."""
    labels = f"app=k3d,cluster={cluster},component={role}"
    return msgspec.json.encode({
        "Names": name,
        "State": state,
        "Labels": labels,
        "Image": "docker.io/rancher/k3s:v1.31.4-k3s1",
    }).decode()


class FakeDocker:
    """subprocess.run double answering docker CLI calls.

    Parameters
    ----------
    containers : Sequence[str], optional
        ``docker ps`` JSON lines; ``ps`` calls return those matching every
        ``--filter label=...``.
    fail_on : tuple[str, str] | None, optional
        ``(subcommand, target)``; the first matching call exits non-zero
        with ``boom`` on stderr.

    """

    def __init__(
        self,
        *,
        containers: cabc.Sequence[str] = (),
        fail_on: tuple[str, str] | None = None,
    ) -> None:
        """Initialise with canned ``ps`` output and an optional failure."""
        self.calls: list[tuple[str, ...]] = []
        self.containers = list(containers)
        self.fail_on = fail_on

    def _ps(self, args: list[str]) -> str:
        wanted = [
            value.removeprefix("label=")
            for flag, value in itertools.pairwise(args)
            if flag == "--filter"
        ]
        lines = []
        for line in self.containers:
            try:
                labels = msgspec.json.decode(line)["Labels"].split(",")
            except msgspec.DecodeError:
                # Garbage is passed through for the caller to reject.
                lines.append(line)
                continue
            if all(label in labels for label in wanted):
                lines.append(line)
        return "\n".join(lines)

    def _fails(self, args: list[str]) -> bool:
        if self.fail_on is None:
            return False
        subcommand, target = self.fail_on
        return args[1] == subcommand and target in args

    def __call__(
        self, args: list[str], **kwargs: object
    ) -> subprocess.CompletedProcess[str]:
        """Record the call and return a canned result."""
        self.calls.append(tuple(args))
        if self._fails(args):
            self.fail_on = None
            if kwargs.get("check"):
                raise subprocess.CalledProcessError(1, args, "", "boom")
            return subprocess.CompletedProcess(args, 1, stdout="", stderr="boom")
        stdout = ""
        if args[1] == "ps":
            stdout = self._ps(args)
        elif args[1] in {"run", "network"}:
            stdout = "0123456789ab\n"
        return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr="")

    def subcommands(self) -> list[str]:
        """Return the docker subcommand of every recorded call."""
        return [call[1] for call in self.calls]

    def targets(self, subcommand: str) -> list[str]:
        """Return the last argument of every call to ``subcommand``."""
        return [call[-1] for call in self.calls if call[1] == subcommand]


class FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        """Start with no recorded calls."""
        self.calls: list[tuple[str, str]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        """Record the level and message."""
        self.calls.append((level, message))
        return message

    def messages(self, level: str) -> list[str]:
        """Return the messages logged at ``level``."""
        return [message for lvl, message in self.calls if lvl == level]
