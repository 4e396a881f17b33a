"""
Composition Root

Architectural Intent:
- Dependency injection composition root for stagecoach
- Single place where the config, adapters, tasks and use cases are wired together
- No adapter instantiation should occur outside this module (except tests)

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- One container per invocation, because the deployment is per invocation
- Applications without explicit tasks get the default release task set
"""

from dataclasses import dataclass
from typing import Any, Optional

from stagecoach.application.orchestration.task_registry import TaskRegistry
from stagecoach.application.orchestration.workflow import DEFAULT_STAGES, SimpleWorkflow
from stagecoach.application.use_cases.describe_deployment import DescribeDeployment
from stagecoach.application.use_cases.run_deployment import RunDeployment
from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.events.event_base import DeploymentOutcomeEvent
from stagecoach.domain.exceptions import ConfigurationError
from stagecoach.domain.ports.shell_port import ShellCommandPort
from stagecoach.domain.ports.task_port import Task
from stagecoach.domain.value_objects.node import Node
from stagecoach.domain.value_objects.release_identifier import ReleaseIdentifier
from stagecoach.infrastructure.adapters.fabric_adapter import FabricShellAdapter
from stagecoach.infrastructure.config import StagecoachConfig, TaskConfig
from stagecoach.infrastructure.event_bus import EventBus
from stagecoach.infrastructure.tasks import (
    TASK_TYPES,
    CleanupReleasesTask,
    CreateDirectoriesTask,
    LockDeploymentTask,
    RsyncTransferTask,
    SymlinkReleaseTask,
    UnlockDeploymentTask,
)
from stagecoach.infrastructure.telemetry.otel_exporter import OTELConfig, OTELExporter


@dataclass
class StagecoachContainer:
    """DI container holding all wired dependencies for one deployment."""

    config: StagecoachConfig
    shell: ShellCommandPort
    event_bus: EventBus
    telemetry: OTELExporter
    deployment: Deployment
    workflow: SimpleWorkflow
    run_deployment: RunDeployment
    describe_deployment: DescribeDeployment


def create_task(task_config: TaskConfig, shell: ShellCommandPort) -> Task:
    task_cls = TASK_TYPES.get(task_config.type)
    if task_cls is None:
        raise ConfigurationError(
            f"Unknown task type {task_config.type!r}, "
            f"expected one of: {', '.join(sorted(TASK_TYPES))}"
        )
    return task_cls(shell, name=task_config.name or None, options=task_config.options)


def register_default_tasks(
    registry: TaskRegistry,
    application: Application,
    shell: ShellCommandPort,
    deployment_options: dict[str, Any],
) -> None:
    defaults: list[tuple[str, Task]] = [
        ("initialize", CreateDirectoriesTask(shell)),
        ("lock", LockDeploymentTask(shell)),
    ]
    if "package_path" in {**deployment_options, **application.options}:
        defaults.append(("transfer", RsyncTransferTask(shell)))
    defaults += [
        ("switch", SymlinkReleaseTask(shell)),
        ("cleanup", CleanupReleasesTask(shell)),
        ("unlock", UnlockDeploymentTask(shell)),
    ]
    # custom stage lists may leave some of these stages out
    for stage, task in defaults:
        if stage in registry.stages:
            registry.add_task(task, stage, application)


def build_deployment(
    config: StagecoachConfig,
    release_identifier: Optional[str] = None,
    dry_run: bool = False,
) -> Deployment:
    try:
        nodes = {
            n.name: Node(name=n.name, host=n.host, user=n.user, port=n.port)
            for n in config.nodes
        }
        release = ReleaseIdentifier(release_identifier) if release_identifier else None
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    deployment = Deployment(
        name=config.deployment.name,
        nodes=nodes.values(),
        release_identifier=release,
        options=config.deployment.options,
        dry_run=dry_run,
    )
    for app_config in config.applications:
        deployment.add_application(
            Application(
                name=app_config.name,
                deployment_path=app_config.deployment_path,
                nodes=[nodes[name] for name in app_config.nodes],
                options=dict(app_config.options),
            )
        )
    return deployment


def build_workflow(
    config: StagecoachConfig, deployment: Deployment, shell: ShellCommandPort
) -> SimpleWorkflow:
    workflow = SimpleWorkflow(
        stages=config.workflow.stages or DEFAULT_STAGES,
        enable_rollback=config.workflow.enable_rollback,
    )
    app_configs = {a.name: a for a in config.applications}
    for application in deployment.applications:
        app_config = app_configs[application.name]
        if not app_config.tasks:
            register_default_tasks(
                workflow.registry, application, shell, deployment.options
            )
            continue
        for stage, task_configs in app_config.tasks.items():
            workflow.registry.add_task(
                [create_task(tc, shell) for tc in task_configs], stage, application
            )
    return workflow


def create_container(
    config: StagecoachConfig,
    release_identifier: Optional[str] = None,
    dry_run: bool = False,
    enable_rollback: Optional[bool] = None,
) -> StagecoachContainer:
    """Create and wire all dependencies."""
    shell = FabricShellAdapter()
    event_bus = EventBus()
    telemetry = OTELExporter(
        OTELConfig(
            endpoint=config.telemetry.endpoint,
            service_name=config.telemetry.service_name,
            insecure=config.telemetry.insecure,
        )
    )
    event_bus.subscribe(DeploymentOutcomeEvent, telemetry.handle_event)

    deployment = build_deployment(config, release_identifier, dry_run)
    workflow = build_workflow(config, deployment, shell)
    if enable_rollback is not None:
        workflow.enable_rollback = enable_rollback

    return StagecoachContainer(
        config=config,
        shell=shell,
        event_bus=event_bus,
        telemetry=telemetry,
        deployment=deployment,
        workflow=workflow,
        run_deployment=RunDeployment(workflow, event_bus),
        describe_deployment=DescribeDeployment(),
    )
