"""
Database Dump Task

Pipes a mysqldump of the source database through SSH into mysql on the
node. Runs on the local machine; every argument is single-quoted.
"""

from typing import Any

from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.value_objects.node import Node
from stagecoach.infrastructure.tasks.base import LOCALHOST, ShellBackedTask, quote_arguments

REQUIRED_OPTIONS = (
    "source_host",
    "source_user",
    "source_password",
    "source_database",
    "target_host",
    "target_user",
    "target_password",
    "target_database",
)


class DumpDatabaseTask(ShellBackedTask):
    def build_command(self, node: Node, options: dict[str, Any]) -> str:
        o = {key: str(self.require_option(options, key)) for key in REQUIRED_OPTIONS}

        dump = quote_arguments([
            "mysqldump",
            "-h", o["source_host"],
            "-u", o["source_user"],
            f"-p{o['source_password']}",
            o["source_database"],
        ])
        mysql = quote_arguments([
            "mysql",
            "-h", o["target_host"],
            "-u", o["target_user"],
            f"-p{o['target_password']}",
            o["target_database"],
        ])

        ssh = ["ssh"]
        if node.port != 22:
            ssh += ["-p", str(node.port)]
        ssh += [node.ssh_target, mysql]
        return f"{dump} | {quote_arguments(ssh)}"

    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        await self.run(self.build_command(node, options), LOCALHOST, deployment)
