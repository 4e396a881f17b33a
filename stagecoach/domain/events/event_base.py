"""
Domain Events Module

Architectural Intent:
- Immutable records of what a deployment run ended with
- Collected by the Deployment aggregate on status transition
- Published once per run by the RunDeployment use case
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, ClassVar


@dataclass(frozen=True)
class DomainEvent:
    occurred_at: str = field(
        default_factory=lambda: datetime.now(UTC).isoformat(), init=False, repr=False
    )
    aggregate_id: str = ""

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at,
            "event_type": self.event_type,
        }


@dataclass(frozen=True)
class DeploymentOutcomeEvent(DomainEvent):
    """A run reached a terminal status. ``outcome`` is the status name."""

    outcome: ClassVar[str] = ""

    release_identifier: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["release_identifier"] = self.release_identifier
        data["outcome"] = self.outcome
        return data
