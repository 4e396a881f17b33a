"""
Release Layout Tasks

Architectural Intent:
- Maintain the on-node layout: <deployment_path>/{releases,shared}
- releases/current and releases/previous are symlinks to release directories
- Switching is undoable until the workflow passes the switch stage

Layout:
    <deployment_path>/releases/<release identifier>/
    <deployment_path>/releases/current  -> ./<release identifier>
    <deployment_path>/releases/previous -> ./<older release identifier>
    <deployment_path>/shared/
"""

import logging
from typing import Any

from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.value_objects.node import Node
from stagecoach.infrastructure.tasks.base import LOCALHOST, ShellBackedTask, q

logger = logging.getLogger(__name__)


class CreateDirectoriesTask(ShellBackedTask):
    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        self.require_deployment_path(application)
        paths = (
            application.deployment_path,
            application.releases_path,
            application.shared_path,
        )
        await self.run(
            "mkdir -p " + " ".join(q(p) for p in paths), node, deployment
        )


class RsyncTransferTask(ShellBackedTask):
    """Copies the local ``package_path`` into the new release directory."""

    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        source = str(self.require_option(options, "package_path")).rstrip("/")
        release_path = deployment.release_path(application)
        flags = options.get("rsync_flags", "-az --delete")

        await self.run(f"mkdir -p {q(release_path)}", node, deployment)

        if node.is_local:
            target = f"{release_path}/"
            ssh = ""
        else:
            target = f"{node.ssh_target}:{release_path}/"
            ssh = f"-e {q(f'ssh -p {node.port}')} "
        await self.run(
            f"rsync {flags} {ssh}{q(source + '/')} {q(target)}", LOCALHOST, deployment
        )

    async def rollback(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        await self.run(f"rm -rf {q(deployment.release_path(application))}", node, deployment)


class SymlinkReleaseTask(ShellBackedTask):
    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        self.require_deployment_path(application)
        release = q(f"./{deployment.release_identifier}")
        await self.run(
            [
                f"cd {q(application.releases_path)}",
                "rm -f ./previous",
                "if [ -L ./current ]; then mv ./current ./previous; fi",
                f"ln -s {release} ./next",
                "mv ./next ./current",
            ],
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
        await self.run(
            [
                f"cd {q(application.releases_path)}",
                "rm -f ./current",
                "if [ -L ./previous ]; then mv ./previous ./current; fi",
            ],
            node,
            deployment,
        )


class CleanupReleasesTask(ShellBackedTask):
    """Removes old releases, keeping the newest ``keep_releases`` (default 3).

    The current, the previous and the release being deployed are never removed.
    """

    async def execute(
        self,
        node: Node,
        application: Application,
        deployment: Deployment,
        options: dict[str, Any],
    ) -> None:
        self.require_deployment_path(application)
        keep = int(options.get("keep_releases", 3))
        releases_path = application.releases_path

        listing = await self.run(f"ls -1 {q(releases_path)}", node, deployment)
        links = await self.run(
            f"readlink {q(application.current_path)} {q(application.previous_path)}",
            node,
            deployment,
            ignore_errors=True,
        )

        protected = {"current", "previous", "next", str(deployment.release_identifier)}
        protected.update(line.strip().removeprefix("./") for line in links.splitlines())

        candidates = sorted(
            name
            for name in (line.strip() for line in listing.splitlines())
            if name and not name.startswith(".") and name not in protected
        )
        obsolete = candidates[: max(len(candidates) - keep, 0)]
        if not obsolete:
            logger.debug("No obsolete releases on %s for %s", node, application.name)
            return

        deployment.logger.info(
            "Removing %d old release(s) on %s: %s", len(obsolete), node, ", ".join(obsolete)
        )
        await self.run(
            "rm -rf " + " ".join(q(f"{releases_path}/{name}") for name in obsolete),
            node,
            deployment,
        )
