"""
Fabric Adapter

Architectural Intent:
- Infrastructure adapter implementing ShellCommandPort via Fabric/SSH
- Local nodes (localhost) run through invoke without an SSH hop
- Blocking transport calls are moved off the event loop with asyncio.to_thread

Security:
- SSH connections use connect_timeout, allow_agent, look_for_keys
- Commands are passed through verbatim; tasks are responsible for quoting
"""

import asyncio
import logging
from typing import Any

from fabric import Connection
from invoke import Context

from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.exceptions import TaskExecutionError
from stagecoach.domain.ports.shell_port import Command, ShellCommandPort
from stagecoach.domain.value_objects.node import Node

logger = logging.getLogger(__name__)


def _join(command: Command) -> str:
    if isinstance(command, str):
        return command
    return " && ".join(command)


class FabricShellAdapter(ShellCommandPort):
    """Adapter implementing ShellCommandPort via Fabric/SSH."""

    def __init__(self, connect_timeout: int = 30) -> None:
        self.connect_timeout = connect_timeout

    def _get_connection(self, node: Node) -> Connection:
        return Connection(
            host=node.host,
            user=node.user,
            port=node.port,
            connect_timeout=self.connect_timeout,
            connect_kwargs={
                "allow_agent": True,
                "look_for_keys": True,
            },
        )

    def _run(self, command: str, node: Node) -> Any:
        if node.is_local:
            return Context().run(command, hide=True, warn=True)
        return self._get_connection(node).run(command, hide=True, warn=True)

    async def execute(
        self,
        command: Command,
        node: Node,
        deployment: Deployment,
        ignore_errors: bool = False,
    ) -> str:
        cmd = _join(command)
        deployment.logger.debug("%s: %s", node, cmd)

        result = await asyncio.to_thread(self._run, cmd, node)

        output = (result.stdout or "").strip()
        if output:
            deployment.logger.debug("> %s", output)

        if result.failed and not ignore_errors:
            stderr = (result.stderr or "").strip()
            logger.error("Command failed on %s (exit %s): %s", node, result.exited, stderr)
            raise TaskExecutionError(
                f"Command returned non-zero return code {result.exited} on {node}: {stderr}"
            )
        return output

    async def simulate(self, command: Command, node: Node, deployment: Deployment) -> str:
        deployment.logger.info("%s: %s (simulated)", node, _join(command))
        return ""
