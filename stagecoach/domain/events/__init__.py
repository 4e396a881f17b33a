"""
Domain Events Package

Architectural Intent:
- Contains the domain event base; concrete deployment events live with the
  Deployment aggregate that raises them
- Events are the primary mechanism for cross-boundary communication
"""

from stagecoach.domain.events.event_base import DeploymentOutcomeEvent, DomainEvent

__all__ = ["DomainEvent", "DeploymentOutcomeEvent"]
