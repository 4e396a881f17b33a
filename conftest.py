"""Global test configuration.

Provides a journaling Task double so workflow and ledger tests can assert
on exactly what ran, in which order, and what was undone.
"""

import pytest

from stagecoach.domain.ports.task_port import Task


class RecordingTask(Task):
    def __init__(self, name, journal, fail_with=None, undo_fails=False, options=None):
        self._name = name
        self.journal = journal
        self.fail_with = fail_with
        self.undo_fails = undo_fails
        self._options = options or {}
        self.received_options = []

    @property
    def name(self):
        return self._name

    @property
    def default_options(self):
        return dict(self._options)

    async def execute(self, node, application, deployment, options):
        self.received_options.append(dict(options))
        self.journal.append(("execute", self._name, node.name, application.name))
        if self.fail_with is not None:
            raise self.fail_with

    async def simulate(self, node, application, deployment, options):
        self.journal.append(("simulate", self._name, node.name, application.name))

    async def rollback(self, node, application, deployment, options):
        self.journal.append(("rollback", self._name, node.name, application.name))
        if self.undo_fails:
            raise RuntimeError(f"undo of {self._name} failed")


@pytest.fixture
def journal():
    return []


@pytest.fixture
def make_task(journal):
    def factory(name, **kwargs):
        return RecordingTask(name, journal, **kwargs)

    return factory
