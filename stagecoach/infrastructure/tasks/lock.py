"""
Deployment Lock Tasks

Architectural Intent:
- Serialize concurrent deployments to the same target with a lock file
- A lock held by another release surfaces as DeploymentLockedError, which
  the workflow turns into a cancelled deployment instead of a failed one
"""

from typing import Any

from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.exceptions import DeploymentLockedError
from stagecoach.domain.value_objects.node import Node
from stagecoach.infrastructure.tasks.base import ShellBackedTask, lock_file_path, q


class LockDeploymentTask(ShellBackedTask):
    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        self.require_deployment_path(application)
        lock_file = lock_file_path(application)
        release = str(deployment.release_identifier)

        if not options.get("force_lock"):
            owner = await self.run(
                f"if [ -f {q(lock_file)} ]; then cat {q(lock_file)}; fi", node, deployment
            )
            if owner and owner != release:
                raise DeploymentLockedError(
                    f"Deployment {deployment.name} on {node} is locked by release {owner}"
                )

        lock_dir = lock_file.rsplit("/", 1)[0]
        await self.run(
            [f"mkdir -p {q(lock_dir)}", f"echo {q(release)} > {q(lock_file)}"],
            node,
            deployment,
        )

    async def rollback(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        await self.run(f"rm -f {q(lock_file_path(application))}", node, deployment)


class UnlockDeploymentTask(ShellBackedTask):
    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        self.require_deployment_path(application)
        await self.run(f"rm -f {q(lock_file_path(application))}", node, deployment)
