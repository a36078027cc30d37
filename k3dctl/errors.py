"""Exceptions raised by k3dctl.

Every error derives from :class:`K3dctlError` so the CLI has a single catch
point. Validation errors are built through classmethods that carry the
offending value into the message.
"""

from __future__ import annotations


class K3dctlError(Exception):
    """Base class for all k3dctl errors."""


class InvalidHostnameError(K3dctlError):
    """Raised when a cluster name or node specifier is not a valid hostname.

    Attributes
    ----------
    name
        The rejected string, exactly as given.

    """

    def __init__(self, name: str, message: str) -> None:
        """Initialise with the rejected name and a description of the rule."""
        self.name = name
        super().__init__(message)

    @classmethod
    def empty(cls, name: str) -> InvalidHostnameError:
        """Create error for an empty hostname."""
        return cls(name, f"Hostname [{name}] must not be empty")

    @classmethod
    def dash_edge(cls, name: str) -> InvalidHostnameError:
        """Create error for a hostname starting or ending with a dash."""
        return cls(name, f"Hostname [{name}] must not start or end with - (dash)")

    @classmethod
    def bad_character(cls, name: str) -> InvalidHostnameError:
        """Create error for a hostname with characters outside [A-Za-z0-9-]."""
        return cls(
            name,
            f"Hostname [{name}] contains characters other than 'Aa-Zz', '0-9' or '-'",
        )

    @classmethod
    def too_long(cls, name: str, limit: int) -> InvalidHostnameError:
        """Create error for a cluster name exceeding ``limit`` characters."""
        return cls(name, f"Cluster name [{name}] is too long ({len(name)} > {limit})")


class InvalidPortSpecError(K3dctlError):
    """Raised when a ``--publish`` spec fails validation.

    Attributes
    ----------
    spec
        The full publish spec as supplied by the user.
    part
        The offending portion (binding portion or node specifier).

    """

    def __init__(self, spec: str, part: str, message: str) -> None:
        """Initialise with the spec, the offending part and the message."""
        self.spec = spec
        self.part = part
        super().__init__(message)

    @classmethod
    def invalid_binding(
        cls, spec: str, binding: str, reason: str
    ) -> InvalidPortSpecError:
        """Create error for a binding portion rejected by the grammar."""
        return cls(
            spec,
            binding,
            f"Invalid port specification [{binding}] in port mapping [{spec}]: "
            f"{reason}",
        )

    @classmethod
    def invalid_node_specifier(
        cls, spec: str, node: str, reason: str
    ) -> InvalidPortSpecError:
        """Create error for a node specifier that is not a valid hostname."""
        return cls(
            spec,
            node,
            f"Invalid node-specifier [{node}] in port mapping [{spec}]: {reason}",
        )


class PortParseError(K3dctlError):
    """Raised when a binding cannot be turned into engine port structures.

    Attributes
    ----------
    binding
        The binding portion that failed to parse.

    """

    def __init__(self, binding: str, reason: str) -> None:
        """Initialise with the binding and the violated rule."""
        self.binding = binding
        self.reason = reason
        super().__init__(f"Invalid port binding [{binding}]: {reason}")


class ClusterConfigError(K3dctlError):
    """Raised when cluster configuration values are invalid."""

    @classmethod
    def invalid_parameter(
        cls, parameter_name: str, value: object, constraint: str
    ) -> ClusterConfigError:
        """Create error for an invalid configuration parameter value."""
        return cls(f"Invalid {parameter_name} '{value}'. {constraint}")

    @classmethod
    def unresolvable_host(cls, host: str, detail: str) -> ClusterConfigError:
        """Create error for an API host that does not resolve."""
        return cls(f"Cannot resolve API host '{host}': {detail}")


class ContainerRuntimeError(K3dctlError):
    """Raised when a docker command fails or times out."""

    @classmethod
    def timed_out(cls, action: str, timeout: float) -> ContainerRuntimeError:
        """Create error for a docker command exceeding its timeout."""
        return cls(f"docker {action} timed out after {timeout} seconds")

    @classmethod
    def failed(cls, action: str, target: str, detail: object) -> ContainerRuntimeError:
        """Create error for a docker command exiting non-zero."""
        return cls(f"docker {action} failed for '{target}': {detail}")


class ExecutableNotFoundError(ContainerRuntimeError):
    """Required CLI tool is not installed."""

    @classmethod
    def missing(cls, name: str) -> ExecutableNotFoundError:
        """Create error for an executable absent from PATH."""
        return cls(f"Required executable '{name}' not found in PATH")
