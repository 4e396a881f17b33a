"""
Domain Exceptions

Architectural Intent:
- Single taxonomy for every failure the orchestrator distinguishes
- The workflow classifies failures by type: a lock conflict cancels,
  anything else fails the run
- Configuration errors are the only failures allowed to escape a run
"""


class StagecoachError(Exception):
    pass


class ConfigurationError(StagecoachError):
    """The deployment definition is incomplete or malformed."""

    @classmethod
    def no_applications(cls) -> "ConfigurationError":
        return cls("No application configured for deployment")

    @classmethod
    def no_nodes(cls) -> "ConfigurationError":
        return cls("No nodes configured for application")

    @classmethod
    def missing_option(cls, task_name: str, option: str) -> "ConfigurationError":
        return cls(f'Missing option "{option}" for task {task_name}')


class DeploymentLockedError(StagecoachError):
    """Another deployment holds the lock on the target."""


class TaskExecutionError(StagecoachError):
    """A task (or the command it ran) failed."""


class InvalidStatusTransitionError(StagecoachError, ValueError):
    pass
