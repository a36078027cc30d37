"""Behavioural coverage for publishing node ports through ``k3dctl create``."""

from __future__ import annotations

import io
import typing as typ
from contextlib import redirect_stderr, redirect_stdout

import pytest
from pytest_bdd import given, parsers, scenario, then, when

from k3dctl.cli import app
from tests.helpers import FakeDocker, ps_line


class PortPublishingContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    containers: list[str]
    docker: FakeDocker
    stdout: str
    stderr: str
    exit_code: int


# Scenario wrappers
@scenario(
    "../port_publishing.feature", "Ports without a node specifier go to the server"
)
def test_default_target_is_server() -> None:
    """Wrap the pytest-bdd scenario for the default node specifier."""


@scenario("../port_publishing.feature", "Worker host ports are offset per worker")
def test_worker_ports_offset() -> None:
    """Wrap the pytest-bdd scenario for worker port offsets."""


@scenario("../port_publishing.feature", "Unknown node specifiers are skipped")
def test_unknown_specifier_skipped() -> None:
    """Wrap the pytest-bdd scenario for unknown node specifiers."""


@scenario("../port_publishing.feature", "Out-of-range host ports are rejected")
def test_out_of_range_rejected() -> None:
    """Wrap the pytest-bdd scenario for invalid publish specs."""


@scenario("../port_publishing.feature", "Existing clusters are not recreated")
def test_existing_cluster_untouched() -> None:
    """Wrap the pytest-bdd scenario for an existing cluster."""


@pytest.fixture
def publishing_context() -> PortPublishingContext:
    """Provide shared context for the BDD steps."""
    return {"containers": [], "stdout": "", "stderr": "", "exit_code": -1}


# Background step
@given("the docker CLI is available")
def given_docker_available(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend docker is on PATH."""
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")


# Given steps
@given(parsers.parse("no cluster named {cluster_name} exists"))
def given_no_cluster(
    publishing_context: PortPublishingContext, cluster_name: str
) -> None:
    """Report no containers from docker ps."""
    publishing_context["containers"] = []


@given(parsers.parse("a cluster named {cluster_name} exists"))
def given_cluster_exists(
    publishing_context: PortPublishingContext, cluster_name: str
) -> None:
    """Report the cluster's server from docker ps."""
    publishing_context["containers"] = [
        ps_line(f"k3d-{cluster_name}-server", "server", cluster_name)
    ]


def _run_create(
    ctx: PortPublishingContext, monkeypatch: pytest.MonkeyPatch, args: list[str]
) -> None:
    """Execute ``k3dctl create`` with mocked docker and capture output."""
    docker = FakeDocker(containers=ctx["containers"])
    monkeypatch.setattr("subprocess.run", docker)
    ctx["docker"] = docker

    stdout, stderr = io.StringIO(), io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr):
        try:
            exit_code = app(["create", *args])
            ctx["exit_code"] = exit_code if exit_code is not None else 0
        except SystemExit as e:
            ctx["exit_code"] = e.code if isinstance(e.code, int) else 1

    ctx["stdout"] = stdout.getvalue()
    ctx["stderr"] = stderr.getvalue()


# When steps
@when(
    parsers.parse(
        'I create cluster {cluster_name} with {workers:d} worker and publish "{spec}"'
    )
)
def when_create_one_worker(
    publishing_context: PortPublishingContext,
    monkeypatch: pytest.MonkeyPatch,
    cluster_name: str,
    workers: int,
    spec: str,
) -> None:
    """Create a cluster with one publish spec."""
    _run_create(
        publishing_context,
        monkeypatch,
        ["--name", cluster_name, "--workers", str(workers), "--publish", spec],
    )


@when(
    parsers.parse(
        "I create cluster {cluster_name} with {workers:d} workers, "
        'port offset {offset:d} and publish "{spec}"'
    )
)
def when_create_with_offset(
    publishing_context: PortPublishingContext,
    monkeypatch: pytest.MonkeyPatch,
    cluster_name: str,
    workers: int,
    offset: int,
    spec: str,
) -> None:
    """Create a cluster with a worker port offset."""
    _run_create(
        publishing_context,
        monkeypatch,
        [
            "--name",
            cluster_name,
            "--workers",
            str(workers),
            "--port-auto-offset",
            str(offset),
            "--publish",
            spec,
        ],
    )


# Then steps - assertions on captured docker calls
def _run_call(ctx: PortPublishingContext, container: str) -> tuple[str, ...]:
    for call in ctx["docker"].calls:
        if call[1] == "run" and call[call.index("--name") + 1] == container:
            return call
    msg = f"Expected docker run for {container}"
    raise AssertionError(msg)


def _published(call: tuple[str, ...]) -> list[str]:
    return [call[i + 1] for i, arg in enumerate(call) if arg == "-p"]


@then(parsers.parse("the exit code is {code:d}"))
def then_exit_code(publishing_context: PortPublishingContext, code: int) -> None:
    """Verify the exit code matches expected."""
    assert publishing_context["exit_code"] == code, f"Expected exit code {code}"


@then(parsers.parse('container {container} publishes "{flag}"'))
def then_container_publishes(
    publishing_context: PortPublishingContext, container: str, flag: str
) -> None:
    """Verify a ``-p`` flag on the container's docker run."""
    published = _published(_run_call(publishing_context, container))
    assert flag in published, f"Expected {flag} on {container}, got {published}"


@then(parsers.parse("container {container} publishes nothing"))
def then_container_publishes_nothing(
    publishing_context: PortPublishingContext, container: str
) -> None:
    """Verify the container's docker run has no ``-p`` flags."""
    published = _published(_run_call(publishing_context, container))
    assert published == [], f"Expected no published ports on {container}"


@then(parsers.parse('the error mentions "{text}"'))
def then_error_mentions(publishing_context: PortPublishingContext, text: str) -> None:
    """Verify stderr carries the validation message."""
    assert text in publishing_context["stderr"], f"Expected {text!r} on stderr"


@then("docker was not asked to run anything")
def then_no_docker_run(publishing_context: PortPublishingContext) -> None:
    """Verify no container was started."""
    runs = [c for c in publishing_context["docker"].calls if c[1] == "run"]
    assert runs == [], "Expected no docker run calls"
