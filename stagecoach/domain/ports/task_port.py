"""
Task Port

Architectural Intent:
- Port interface for the unit of work executed for one (node, application) pair
- The orchestrator only sequences tasks; how a task does its work is up to it
- Implemented by shell-backed tasks in infrastructure, or by plain Python objects

Failure contract:
- Raise DeploymentLockedError when another deployment holds the lock
- Raise anything else for a generic task failure
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stagecoach.domain.entities.application import Application
    from stagecoach.domain.entities.deployment import Deployment
    from stagecoach.domain.value_objects.node import Node


class Task(ABC):
    """
    Port interface for a deployment task.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def default_options(self) -> dict[str, Any]:
        """Options bound to this task instance; override application options."""
        return {}

    @abstractmethod
    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        """
        Performs the task. Returning normally means success.
        """
        pass

    async def simulate(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        """
        Dry-run counterpart of execute(). Must not change the target.
        """
        deployment.logger.info("Would execute %s on %s", self.name, node)

    async def rollback(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        """
        Undoes the effects of a previous successful execute(). Default: nothing to undo.
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.name}>"
