"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from stagecoach.domain.ports.task_port import Task
from stagecoach.domain.ports.shell_port import ShellCommandPort
from stagecoach.domain.ports.event_bus_port import EventBusPort

__all__ = [
    "Task",
    "ShellCommandPort",
    "EventBusPort",
]
