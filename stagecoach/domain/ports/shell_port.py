"""
Shell Command Port

Architectural Intent:
- Port interface for executing shell commands on a deployment target
- Shared by every shell-backed task; injected at task construction
- Implemented by adapters (Fabric/SSH for remote nodes, invoke for localhost)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence, Union

if TYPE_CHECKING:
    from stagecoach.domain.entities.deployment import Deployment
    from stagecoach.domain.value_objects.node import Node

Command = Union[str, Sequence[str]]


class ShellCommandPort(ABC):
    """
    Port interface for executing commands on a node.
    """

    @abstractmethod
    async def execute(
        self,
        command: Command,
        node: Node,
        deployment: Deployment,
        ignore_errors: bool = False,
    ) -> str:
        """
        Runs the command on the node and returns its stdout.
        Raises TaskExecutionError on a non-zero exit unless ignore_errors is set.
        """
        pass

    @abstractmethod
    async def simulate(
        self,
        command: Command,
        node: Node,
        deployment: Deployment,
    ) -> str:
        """
        Logs the command that would run and returns an empty output.
        """
        pass
