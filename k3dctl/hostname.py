"""Hostname rules for cluster names and node specifiers.

Names end up as container hostnames and network aliases, so they follow the
RFC 1123 label alphabet: ASCII letters, digits and ``-``, with no leading or
trailing dash.
"""

from __future__ import annotations

import string

from k3dctl.errors import InvalidHostnameError

# Room for "k3d-" plus "-worker-NNN" within the 63 character label limit.
CLUSTER_NAME_MAX_SIZE = 35

_HOSTNAME_CHARS = frozenset(string.ascii_letters + string.digits + "-")


def validate_hostname(name: str) -> None:
    """Ensure ``name`` is usable as a container hostname.

    Parameters
    ----------
    name : str
        Candidate hostname.

    Raises
    ------
    InvalidHostnameError
        If the name is empty, starts or ends with ``-``, or contains a
        character other than ``A-Z``, ``a-z``, ``0-9`` and ``-``.

    """
    if not name:
        raise InvalidHostnameError.empty(name)
    if name[0] == "-" or name[-1] == "-":
        raise InvalidHostnameError.dash_edge(name)
    if not _HOSTNAME_CHARS.issuperset(name):
        raise InvalidHostnameError.bad_character(name)


def check_cluster_name(name: str) -> None:
    """Validate a cluster name.

    Cluster names are hostnames limited to ``CLUSTER_NAME_MAX_SIZE``
    characters so derived container names stay valid hostnames.

    Raises
    ------
    InvalidHostnameError
        If the name breaks a hostname rule or is too long.

    """
    validate_hostname(name)
    if len(name) > CLUSTER_NAME_MAX_SIZE:
        raise InvalidHostnameError.too_long(name, CLUSTER_NAME_MAX_SIZE)
