"""
Node Value Object

Architectural Intent:
- Immutable value object representing a deployment target host
- Validates hostname format (DNS, IPv4, IPv6), port bounds, non-empty name
- Supports IPv6 bracket notation in parse() (e.g., web1=deploy@[::1]:22)
- Compared by value so applications can test membership with plain equality
"""

import re
from dataclasses import dataclass
from typing import Optional

# RFC 1123 hostname: labels of alnum/hyphens, dot-separated
_HOSTNAME_RE = re.compile(
    r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$"
)

# Simple IPv4 pattern
_IPV4_RE = re.compile(
    r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$"
)

# IPv6 pattern (simplified, accepts common forms including ::1, fe80::1, etc.)
_IPV6_RE = re.compile(r"^[0-9a-fA-F:]+$")

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def _is_valid_hostname(host: str) -> bool:
    """Validate hostname as DNS name, IPv4, or IPv6."""
    if not host:
        return False

    m = _IPV4_RE.match(host)
    if m:
        return all(0 <= int(g) <= 255 for g in m.groups())

    if _IPV6_RE.match(host) and ":" in host:
        return True

    if _HOSTNAME_RE.match(host) and len(host) <= 253:
        return True

    return False


@dataclass(frozen=True)
class Node:
    """
    Value Object representing a deployment target.

    ``user`` is optional: when unset the transport falls back to its own
    default (the local user for SSH).
    """
    name: str
    host: str
    user: Optional[str] = None
    port: int = 22

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Node name cannot be empty")
        if self.user == "":
            raise ValueError("Node user cannot be empty")
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        if not _is_valid_hostname(self.host):
            raise ValueError(f"Invalid hostname: {self.host!r}")

    @property
    def is_local(self) -> bool:
        return self.host in _LOCAL_HOSTS

    @property
    def ssh_target(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host

    def __str__(self) -> str:
        return self.name

    @staticmethod
    def parse(connection_string: str) -> "Node":
        """
        Parses 'name=user@host:port', 'user@host:port', 'host' or
        'user@[::1]:port' into a Node. Without an explicit name the host
        doubles as the node name.
        """
        user = None
        port = 22
        target = connection_string.strip()
        name = None

        if "=" in target:
            name, target = target.split("=", 1)

        host = target
        if "@" in host:
            user, host = host.split("@", 1)

        # IPv6 bracket notation: [::1]:port or [::1]
        if host.startswith("["):
            bracket_end = host.find("]")
            if bracket_end == -1:
                raise ValueError(f"Unterminated IPv6 bracket in: {connection_string}")
            ipv6_addr = host[1:bracket_end]
            remainder = host[bracket_end + 1:]
            if remainder.startswith(":"):
                port = int(remainder[1:])
            host = ipv6_addr
        elif ":" in host:
            last_colon = host.rfind(":")
            try:
                port = int(host[last_colon + 1:])
                host = host[:last_colon]
            except ValueError:
                pass

        return Node(name=name or host, host=host, user=user, port=port)
