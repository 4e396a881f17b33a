"""
Deployment Module

Architectural Intent:
- Deployment aggregate is the consistency boundary for one orchestration run
- Holds the run's target set (nodes, applications) and its release identifier
- Status moves through an explicit one-way transition: UNKNOWN -> terminal
- Domain events are collected on transition and published by the use case
- Created once per invocation and discarded afterwards; nothing is persisted

Domain Events:
- DeploymentSucceededEvent: Published when all stages complete
- DeploymentFailedEvent: Published when a task fails
- DeploymentCancelledEvent: Published when another deployment holds the lock
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from stagecoach.domain.entities.application import Application
from stagecoach.domain.events.event_base import DeploymentOutcomeEvent, DomainEvent
from stagecoach.domain.exceptions import InvalidStatusTransitionError
from stagecoach.domain.value_objects.node import Node
from stagecoach.domain.value_objects.release_identifier import ReleaseIdentifier
from stagecoach.infrastructure.logging import DeploymentLogger


class DeploymentStatus(Enum):
    UNKNOWN = "unknown"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def is_unknown(self) -> bool:
        return self is DeploymentStatus.UNKNOWN

    def is_terminal(self) -> bool:
        return self is not DeploymentStatus.UNKNOWN

    def transition_to(self, target: "DeploymentStatus") -> "DeploymentStatus":
        if self.is_terminal():
            raise InvalidStatusTransitionError(
                f"Deployment status is already {self.name}, cannot change to {target.name}"
            )
        if not target.is_terminal():
            raise InvalidStatusTransitionError(
                f"Cannot transition from {self.name} to {target.name}"
            )
        return target


@dataclass(frozen=True)
class DeploymentSucceededEvent(DeploymentOutcomeEvent):
    outcome = "SUCCESS"


@dataclass(frozen=True)
class DeploymentFailedEvent(DeploymentOutcomeEvent):
    outcome = "FAILED"


@dataclass(frozen=True)
class DeploymentCancelledEvent(DeploymentOutcomeEvent):
    outcome = "CANCELLED"


_STATUS_EVENTS = {
    DeploymentStatus.SUCCESS: DeploymentSucceededEvent,
    DeploymentStatus.FAILED: DeploymentFailedEvent,
    DeploymentStatus.CANCELLED: DeploymentCancelledEvent,
}


class Deployment:
    __slots__ = (
        "_name",
        "_nodes",
        "_applications",
        "_release_identifier",
        "_status",
        "_logger",
        "_options",
        "_dry_run",
        "_domain_events",
    )

    def __init__(
        self,
        name: str,
        nodes: Iterable[Node] = (),
        applications: Iterable[Application] = (),
        release_identifier: Optional[ReleaseIdentifier] = None,
        options: Optional[dict[str, Any]] = None,
        dry_run: bool = False,
        logger: Optional[DeploymentLogger] = None,
    ):
        if not name:
            raise ValueError("Deployment name cannot be empty")
        self._name = name
        self._nodes = list(nodes)
        self._applications = list(applications)
        self._release_identifier = release_identifier or ReleaseIdentifier.from_timestamp()
        self._status = DeploymentStatus.UNKNOWN
        self._logger = logger or DeploymentLogger(name)
        self._options = dict(options or {})
        self._dry_run = dry_run
        self._domain_events: tuple[DomainEvent, ...] = ()

    @property
    def name(self) -> str:
        return self._name

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes)

    @property
    def applications(self) -> list[Application]:
        return list(self._applications)

    @property
    def release_identifier(self) -> ReleaseIdentifier:
        return self._release_identifier

    @property
    def status(self) -> DeploymentStatus:
        return self._status

    @property
    def logger(self) -> DeploymentLogger:
        return self._logger

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._options)

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        return self._domain_events

    def add_node(self, node: Node) -> "Deployment":
        if node not in self._nodes:
            self._nodes.append(node)
        return self

    def add_application(self, application: Application) -> "Deployment":
        self._applications.append(application)
        for node in application.nodes:
            self.add_node(node)
        return self

    def set_status(self, status: DeploymentStatus) -> None:
        self._status = self._status.transition_to(status)
        event_cls = _STATUS_EVENTS[status]
        self._domain_events = self._domain_events + (
            event_cls(
                aggregate_id=self._name,
                release_identifier=str(self._release_identifier),
            ),
        )

    def release_path(self, application: Application) -> str:
        return application.release_path(self._release_identifier)

    def __repr__(self) -> str:
        return (
            f"Deployment(name={self._name}, release={self._release_identifier}, "
            f"status={self._status}, nodes={len(self._nodes)}, "
            f"applications={len(self._applications)})"
        )
