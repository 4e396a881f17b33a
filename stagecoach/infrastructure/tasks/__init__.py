"""
Concrete Tasks Package

Architectural Intent:
- Shell-backed implementations of the Task port
- Each task receives the ShellCommandPort it runs commands through
"""

from stagecoach.infrastructure.tasks.base import ShellBackedTask
from stagecoach.infrastructure.tasks.database import DumpDatabaseTask
from stagecoach.infrastructure.tasks.lock import LockDeploymentTask, UnlockDeploymentTask
from stagecoach.infrastructure.tasks.release import (
    CleanupReleasesTask,
    CreateDirectoriesTask,
    RsyncTransferTask,
    SymlinkReleaseTask,
)
from stagecoach.infrastructure.tasks.shell import ShellTask

TASK_TYPES: dict[str, type[ShellBackedTask]] = {
    "shell": ShellTask,
    "create_directories": CreateDirectoriesTask,
    "lock": LockDeploymentTask,
    "unlock": UnlockDeploymentTask,
    "rsync_transfer": RsyncTransferTask,
    "symlink_release": SymlinkReleaseTask,
    "cleanup_releases": CleanupReleasesTask,
    "dump_database": DumpDatabaseTask,
}

__all__ = [
    "TASK_TYPES",
    "ShellBackedTask",
    "ShellTask",
    "CreateDirectoriesTask",
    "LockDeploymentTask",
    "UnlockDeploymentTask",
    "RsyncTransferTask",
    "SymlinkReleaseTask",
    "CleanupReleasesTask",
    "DumpDatabaseTask",
]
