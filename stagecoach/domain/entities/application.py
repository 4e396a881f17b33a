"""
Application Entity

Architectural Intent:
- A deployable unit bound to a subset of the deployment's nodes
- Holds non-owning references to nodes; node lifecycle belongs to the deployment
- Owns the on-disk layout convention: <deployment_path>/releases/<release identifier>
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from stagecoach.domain.value_objects.node import Node


@dataclass(eq=False)
class Application:
    name: str
    deployment_path: str = ""
    nodes: list[Node] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Application name cannot be empty")
        self.deployment_path = self.deployment_path.rstrip("/")
        self.nodes = list(self.nodes)

    def has_node(self, node: Node) -> bool:
        return node in self.nodes

    def add_node(self, node: Node) -> "Application":
        if node not in self.nodes:
            self.nodes.append(node)
        return self

    @property
    def releases_path(self) -> str:
        return f"{self.deployment_path}/releases"

    @property
    def shared_path(self) -> str:
        return f"{self.deployment_path}/shared"

    @property
    def current_path(self) -> str:
        return f"{self.releases_path}/current"

    @property
    def previous_path(self) -> str:
        return f"{self.releases_path}/previous"

    def release_path(self, release_identifier: object) -> str:
        return f"{self.releases_path}/{release_identifier}"

    def __repr__(self) -> str:
        return (
            f"Application(name={self.name!r}, deployment_path={self.deployment_path!r}, "
            f"nodes={[n.name for n in self.nodes]})"
        )
