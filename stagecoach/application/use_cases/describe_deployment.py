"""
Describe Deployment Use Case

Architectural Intent:
- Renders the plan a workflow would follow for a deployment, without running it
- Mirrors the sequencer's iteration order so the plan matches a real run
"""

from stagecoach.application.orchestration.workflow import Workflow
from stagecoach.domain.entities.deployment import Deployment


class DescribeDeployment:
    def execute(self, deployment: Deployment, workflow: Workflow) -> list[str]:
        lines = [
            f"Deployment {deployment.name} (release {deployment.release_identifier})",
            f"Workflow: {workflow.name}, rollback "
            f"{'enabled' if workflow.enable_rollback else 'disabled'}",
            "",
            "Nodes:",
        ]
        lines.extend(
            f"  {node.name} ({node.ssh_target}:{node.port})" for node in deployment.nodes
        )
        lines.append("Applications:")
        for application in deployment.applications:
            lines.append(f"  {application.name}: {application.deployment_path}")
            lines.extend(f"    -> {node.name}" for node in application.nodes)

        lines.append("Stages:")
        for stage in workflow.stages:
            lines.append(f"  {stage}")
            for node in deployment.nodes:
                for application in deployment.applications:
                    if not application.has_node(node):
                        continue
                    tasks = workflow.registry.tasks_for(stage, application)
                    if not tasks:
                        continue
                    names = ", ".join(task.name for task in tasks)
                    lines.append(f"    {node.name} / {application.name}: {names}")
        return lines
