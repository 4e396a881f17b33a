"""
Run Deployment Use Case

Architectural Intent:
- Runs one deployment through a workflow and publishes its outcome events
- Returns the terminal status; only configuration errors are raised
"""

import logging
import time

from stagecoach.application.orchestration.workflow import Workflow
from stagecoach.domain.entities.deployment import Deployment, DeploymentStatus
from stagecoach.domain.ports.event_bus_port import EventBusPort

logger = logging.getLogger(__name__)


class RunDeployment:
    def __init__(self, workflow: Workflow, event_bus: EventBusPort):
        self.workflow = workflow
        self.event_bus = event_bus

    async def execute(self, deployment: Deployment) -> DeploymentStatus:
        logger.info(
            "Starting %s for %s (release %s, dry_run=%s)",
            self.workflow.name,
            deployment.name,
            deployment.release_identifier,
            deployment.dry_run,
        )
        started = time.monotonic()
        await self.workflow.run(deployment)
        duration_ms = (time.monotonic() - started) * 1000

        logger.info(
            "Deployment %s finished with status %s in %.0fms",
            deployment.name,
            deployment.status.name,
            duration_ms,
        )
        await self.event_bus.publish(list(deployment.domain_events))
        return deployment.status
