"""
Workflow Module

Architectural Intent:
- Drives the fixed stage pipeline across every (node, application) pair
- Classifies the first failure into a terminal deployment status
- Decides between rollback and reset using the position of the switch stage

Execution Model:
- Stages outer, nodes middle, applications inner, all in declared order
- An application only runs on nodes it is bound to
- Strictly sequential: every task is awaited before the next one starts
- The first failure anywhere aborts the whole run. Remaining nodes and
  applications of the same stage are not attempted.

Failure Classification:
- DeploymentLockedError -> CANCELLED, rollback if enabled
- Any other exception   -> FAILED; with rollback enabled, rollback when the
  failing stage is at or before switch, reset when it is after (the release
  is live and undo is no longer safe)
- ConfigurationError before the first stage is the only error raised to the caller
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from stagecoach.application.orchestration.task_manager import TaskManager
from stagecoach.application.orchestration.task_registry import TaskRegistry
from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment, DeploymentStatus
from stagecoach.domain.exceptions import ConfigurationError, DeploymentLockedError
from stagecoach.domain.ports.task_port import Task
from stagecoach.domain.value_objects.node import Node

SWITCH_STAGE = "switch"

DEFAULT_STAGES: tuple[str, ...] = (
    # Initialize directories etc. (first time deploy)
    "initialize",
    "lock",
    # Local preparation and packaging of application assets
    "package",
    # Transfer of application assets to the node
    "transfer",
    # Update the application assets on the node
    "update",
    "migrate",
    # Prepare final release (e.g. warmup)
    "finalize",
    # Smoke test
    "test",
    # Make the new release current
    SWITCH_STAGE,
    # Delete temporary files or previous releases
    "cleanup",
    "unlock",
)


class Workflow(ABC):
    def __init__(
        self,
        task_manager: Optional[TaskManager] = None,
        registry: Optional[TaskRegistry] = None,
        stages: Iterable[str] = DEFAULT_STAGES,
        enable_rollback: bool = True,
    ) -> None:
        self.stages: tuple[str, ...] = tuple(stages)
        if SWITCH_STAGE not in self.stages:
            raise ConfigurationError(f"Workflow stages must include {SWITCH_STAGE!r}")
        if len(set(self.stages)) != len(self.stages):
            raise ConfigurationError("Workflow stages must be unique")
        self.task_manager = task_manager or TaskManager()
        self.registry = registry or TaskRegistry(self.stages)
        self.enable_rollback = enable_rollback

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def run(self, deployment: Deployment) -> None:
        pass

    def task_options(
        self, task: Task, application: Application, deployment: Deployment
    ) -> dict[str, Any]:
        options = {**deployment.options, **application.options, **task.default_options}
        scoped = application.options.get(task.name)
        if isinstance(scoped, dict):
            options.update(scoped)
        return options

    async def execute_stage(
        self, stage: str, node: Node, application: Application, deployment: Deployment
    ) -> None:
        for task in self.registry.tasks_for(stage, application):
            await self.task_manager.execute(
                task,
                node,
                application,
                deployment,
                stage,
                self.task_options(task, application, deployment),
            )


class SimpleWorkflow(Workflow):
    """Runs every stage for all nodes before moving on to the next stage.

    A rollback is done for all nodes as long as the switch stage was not
    passed. After switch the ledger is only reset.
    """

    @property
    def name(self) -> str:
        return "Simple workflow"

    def rolls_back_at(self, stage: str) -> bool:
        return self.stages.index(stage) <= self.stages.index(SWITCH_STAGE)

    async def run(self, deployment: Deployment) -> None:
        applications = deployment.applications
        if not applications:
            raise ConfigurationError.no_applications()

        nodes = deployment.nodes
        if not nodes:
            raise ConfigurationError.no_nodes()

        log = deployment.logger
        for stage in self.stages:
            log.notice("Stage %s", stage)
            for node in nodes:
                log.debug("Node %s", node.name)
                for application in applications:
                    if not application.has_node(node):
                        continue

                    log.debug("Application %s", application.name)

                    try:
                        await self.execute_stage(stage, node, application, deployment)
                    except DeploymentLockedError as e:
                        deployment.set_status(DeploymentStatus.CANCELLED)
                        log.info(str(e))
                        if self.enable_rollback:
                            await self.task_manager.rollback()
                        return
                    except Exception as e:
                        deployment.set_status(DeploymentStatus.FAILED)
                        if not self.enable_rollback:
                            log.error('Got exception "%s" but rollback disabled. Stopping.', e)
                        elif self.rolls_back_at(stage):
                            log.error('Got exception "%s" rolling back.', e)
                            await self.task_manager.rollback()
                        else:
                            log.error(
                                'Got exception "%s" but after switch stage, '
                                "no rollback necessary.",
                                e,
                            )
                            self.task_manager.reset()
                        return

        if deployment.status.is_unknown():
            deployment.set_status(DeploymentStatus.SUCCESS)
