"""
Task Manager Module

Architectural Intent:
- Executes a single task for a (node, application) pair and records it on success
- The ledger is the only source of truth for what may be undone
- Rollback undoes recorded tasks in strict reverse order; reset discards them

Rollback Policy:
- Best-effort: an undo failure is logged and collected, and the remaining
  undos still run. Failures are returned to the caller, never raised.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.ports.task_port import Task
from stagecoach.domain.value_objects.node import Node

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutedTask:
    stage: str
    node: Node
    application: Application
    task: Task
    deployment: Deployment
    options: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class RollbackFailure:
    record: ExecutedTask
    error: Exception


class TaskManager:
    def __init__(self) -> None:
        self._history: list[ExecutedTask] = []

    @property
    def history(self) -> tuple[ExecutedTask, ...]:
        return tuple(self._history)

    async def execute(
        self,
        task: Task,
        node: Node,
        application: Application,
        deployment: Deployment,
        stage: str,
        options: Optional[dict[str, Any]] = None,
    ) -> None:
        options = dict(options or {})
        deployment.logger.info("%s (%s) %s", node, application.name, task.name)

        if deployment.dry_run:
            await task.simulate(node, application, deployment, options)
        else:
            await task.execute(node, application, deployment, options)

        self._history.append(
            ExecutedTask(
                stage=stage,
                node=node,
                application=application,
                task=task,
                deployment=deployment,
                options=options,
            )
        )

    async def rollback(self) -> list[RollbackFailure]:
        failures: list[RollbackFailure] = []
        records = list(reversed(self._history))
        self._history.clear()

        for record in records:
            deployment = record.deployment
            deployment.logger.info(
                "Rolling back %s on %s (%s)",
                record.task.name,
                record.node,
                record.application.name,
            )
            if deployment.dry_run:
                continue
            try:
                await record.task.rollback(
                    record.node, record.application, deployment, record.options
                )
            except Exception as e:
                deployment.logger.error(
                    "Rollback of %s on %s failed: %s", record.task.name, record.node, e
                )
                failures.append(RollbackFailure(record=record, error=e))

        if failures:
            logger.warning(
                "Rollback finished with %d of %d undo failures", len(failures), len(records)
            )
        return failures

    def reset(self) -> None:
        logger.debug("Discarding %d executed tasks without rollback", len(self._history))
        self._history.clear()
