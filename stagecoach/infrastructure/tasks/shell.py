"""
Generic Shell Task

Runs the ``command`` option on the node. ``rollback_command`` is run on undo.
Both accept the release placeholders ({release_path}, {current_path}, ...).
"""

from typing import Any

from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.value_objects.node import Node
from stagecoach.infrastructure.tasks.base import ShellBackedTask, placeholders, substitute


def _render(command: Any, values: dict[str, str]) -> list[str]:
    commands = [command] if isinstance(command, str) else list(command)
    return [substitute(c, values) for c in commands]


class ShellTask(ShellBackedTask):
    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        command = self.require_option(options, "command")
        values = placeholders(application, deployment)
        await self.run(
            _render(command, values),
            node,
            deployment,
            ignore_errors=bool(options.get("ignore_errors", False)),
        )

    async def rollback(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        command = options.get("rollback_command")
        if not command:
            return
        values = placeholders(application, deployment)
        await self.run(_render(command, values), node, deployment, ignore_errors=True)
