"""
Application Orchestration Package

Architectural Intent:
- Contains the stage sequencer, the execution ledger and the task registry
- Sequential, stage-by-stage execution with rollback/reset recovery
"""

from stagecoach.application.orchestration.task_manager import (
    TaskManager,
    ExecutedTask,
    RollbackFailure,
)
from stagecoach.application.orchestration.task_registry import TaskRegistry
from stagecoach.application.orchestration.workflow import (
    Workflow,
    SimpleWorkflow,
    DEFAULT_STAGES,
    SWITCH_STAGE,
)

__all__ = [
    "TaskManager",
    "ExecutedTask",
    "RollbackFailure",
    "TaskRegistry",
    "Workflow",
    "SimpleWorkflow",
    "DEFAULT_STAGES",
    "SWITCH_STAGE",
]
