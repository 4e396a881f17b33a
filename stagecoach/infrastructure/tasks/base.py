"""
Shell-backed Task Base

Architectural Intent:
- Shared plumbing for tasks that run shell commands through ShellCommandPort
- The shell capability is injected at construction (composition, not mixins)
- Dry runs route every command to ShellCommandPort.simulate()
"""

from __future__ import annotations
import shlex
from typing import Any, Optional

from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.exceptions import ConfigurationError
from stagecoach.domain.ports.shell_port import Command, ShellCommandPort
from stagecoach.domain.ports.task_port import Task
from stagecoach.domain.value_objects.node import Node

LOCALHOST = Node(name="localhost", host="localhost")

LOCK_DIRECTORY = ".stagecoach"
LOCK_FILE = "deploy.lock"


def quote_arguments(arguments: list[str]) -> str:
    """Single-quote every argument, even ones shlex.quote would leave bare."""
    return " ".join("'" + arg.replace("'", "'\\''") + "'" for arg in arguments)


def q(value: Any) -> str:
    return shlex.quote(str(value))


def lock_file_path(application: Application) -> str:
    return f"{application.deployment_path}/{LOCK_DIRECTORY}/{LOCK_FILE}"


def placeholders(application: Application, deployment: Deployment) -> dict[str, str]:
    return {
        "release_path": deployment.release_path(application),
        "releases_path": application.releases_path,
        "deployment_path": application.deployment_path,
        "shared_path": application.shared_path,
        "current_path": application.current_path,
        "previous_path": application.previous_path,
        "release_identifier": str(deployment.release_identifier),
    }


def substitute(command: str, values: dict[str, str]) -> str:
    # plain replace so shell braces like ${HOME} or {a,b} survive
    for key, value in values.items():
        command = command.replace("{" + key + "}", value)
    return command


class ShellBackedTask(Task):
    def __init__(
        self,
        shell: ShellCommandPort,
        name: Optional[str] = None,
        options: Optional[dict[str, Any]] = None,
    ) -> None:
        self.shell = shell
        self._name = name
        self._options = dict(options or {})

    @property
    def name(self) -> str:
        return self._name or type(self).__name__

    @property
    def default_options(self) -> dict[str, Any]:
        return dict(self._options)

    def require_option(self, options: dict[str, Any], key: str) -> Any:
        value = options.get(key)
        if value is None or value == "":
            raise ConfigurationError.missing_option(self.name, key)
        return value

    def require_deployment_path(self, application: Application) -> str:
        if not application.deployment_path:
            raise ConfigurationError(
                f"No deployment path configured for application {application.name}"
            )
        return application.deployment_path

    async def run(
        self,
        command: Command,
        node: Node,
        deployment: Deployment,
        ignore_errors: bool = False,
    ) -> str:
        if deployment.dry_run:
            return await self.shell.simulate(command, node, deployment)
        return await self.shell.execute(command, node, deployment, ignore_errors)

    async def simulate(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        await self.execute(node, application, deployment, options)
