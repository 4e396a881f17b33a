"""
Task Registry Module

Architectural Intent:
- Maps each stage to the tasks that run in it, globally or per application
- Supports hooks around a whole stage and around a single named task
- Resolution order is deterministic, so the ledger order is too

Resolution order for tasks_for(stage, application):
1. before-stage hooks (global, then application)
2. stage tasks (global, then application)
3. after-stage hooks (global, then application)
Each resolved task is surrounded by its own before/after task hooks,
expanded recursively.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Iterable, Optional, Union

from stagecoach.domain.entities.application import Application
from stagecoach.domain.exceptions import ConfigurationError
from stagecoach.domain.ports.task_port import Task

TaskOrTasks = Union[Task, Iterable[Task]]

_PHASES = ("before", "tasks", "after")


def _as_list(tasks: TaskOrTasks) -> list[Task]:
    if isinstance(tasks, Task):
        return [tasks]
    return list(tasks)


def _scope(application: Optional[Application]) -> Optional[str]:
    return application.name if application is not None else None


class TaskRegistry:
    def __init__(self, stages: Iterable[str]) -> None:
        self._stages = tuple(stages)
        self._stage_tasks: dict[tuple[str, Optional[str], str], list[Task]] = defaultdict(list)
        self._task_hooks: dict[tuple[str, Optional[str], str], list[Task]] = defaultdict(list)

    @property
    def stages(self) -> tuple[str, ...]:
        return self._stages

    def _check_stage(self, stage: str) -> None:
        if stage not in self._stages:
            raise ConfigurationError(
                f"Unknown stage {stage!r}, expected one of: {', '.join(self._stages)}"
            )

    def add_task(
        self, tasks: TaskOrTasks, stage: str, application: Optional[Application] = None
    ) -> "TaskRegistry":
        self._check_stage(stage)
        self._stage_tasks[(stage, _scope(application), "tasks")].extend(_as_list(tasks))
        return self

    def before_stage(
        self, stage: str, tasks: TaskOrTasks, application: Optional[Application] = None
    ) -> "TaskRegistry":
        self._check_stage(stage)
        self._stage_tasks[(stage, _scope(application), "before")].extend(_as_list(tasks))
        return self

    def after_stage(
        self, stage: str, tasks: TaskOrTasks, application: Optional[Application] = None
    ) -> "TaskRegistry":
        self._check_stage(stage)
        self._stage_tasks[(stage, _scope(application), "after")].extend(_as_list(tasks))
        return self

    def before_task(
        self, task_name: str, tasks: TaskOrTasks, application: Optional[Application] = None
    ) -> "TaskRegistry":
        self._task_hooks[(task_name, _scope(application), "before")].extend(_as_list(tasks))
        return self

    def after_task(
        self, task_name: str, tasks: TaskOrTasks, application: Optional[Application] = None
    ) -> "TaskRegistry":
        self._task_hooks[(task_name, _scope(application), "after")].extend(_as_list(tasks))
        return self

    def remove_task(self, task_name: str) -> "TaskRegistry":
        for key in list(self._stage_tasks):
            self._stage_tasks[key] = [t for t in self._stage_tasks[key] if t.name != task_name]
        for key in list(self._task_hooks):
            if key[0] == task_name:
                del self._task_hooks[key]
                continue
            self._task_hooks[key] = [t for t in self._task_hooks[key] if t.name != task_name]
        return self

    def _expand(
        self, task: Task, application: Application, chain: tuple[str, ...]
    ) -> list[Task]:
        if task.name in chain:
            raise ConfigurationError(
                f"Circular task hook: {' -> '.join(chain + (task.name,))}"
            )
        chain = chain + (task.name,)
        resolved: list[Task] = []
        for scope in (None, application.name):
            for hook in self._task_hooks.get((task.name, scope, "before"), ()):
                resolved.extend(self._expand(hook, application, chain))
        resolved.append(task)
        for scope in (None, application.name):
            for hook in self._task_hooks.get((task.name, scope, "after"), ()):
                resolved.extend(self._expand(hook, application, chain))
        return resolved

    def tasks_for(self, stage: str, application: Application) -> list[Task]:
        self._check_stage(stage)
        resolved: list[Task] = []
        for phase in _PHASES:
            for scope in (None, application.name):
                for task in self._stage_tasks.get((stage, scope, phase), ()):
                    resolved.extend(self._expand(task, application, ()))
        return resolved
