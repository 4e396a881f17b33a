"""Tests for the TaskManager execution ledger."""

import pytest
from stagecoach.application.orchestration.task_manager import TaskManager
from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.value_objects.node import Node


@pytest.fixture
def node():
    return Node(name="n1", host="10.0.0.1")


@pytest.fixture
def application(node):
    return Application(name="a1", deployment_path="/srv/a1", nodes=[node])


@pytest.fixture
def deployment(node, application):
    return Deployment(name="test", nodes=[node], applications=[application])


class TestExecute:
    @pytest.mark.asyncio
    async def test_records_on_success(self, make_task, node, application, deployment):
        manager = TaskManager()
        task = make_task("t1")

        await manager.execute(task, node, application, deployment, "update", {"x": 1})

        assert len(manager.history) == 1
        record = manager.history[0]
        assert record.stage == "update"
        assert record.node == node
        assert record.application is application
        assert record.task is task
        assert record.options == {"x": 1}
        assert task.received_options == [{"x": 1}]

    @pytest.mark.asyncio
    async def test_failure_propagates_and_records_nothing(
        self, make_task, node, application, deployment
    ):
        manager = TaskManager()
        task = make_task("t1", fail_with=RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            await manager.execute(task, node, application, deployment, "update")

        assert manager.history == ()

    @pytest.mark.asyncio
    async def test_dry_run_simulates(self, journal, make_task, node, application):
        deployment = Deployment(
            name="test", nodes=[node], applications=[application], dry_run=True
        )
        manager = TaskManager()

        await manager.execute(make_task("t1"), node, application, deployment, "update")

        assert journal == [("simulate", "t1", "n1", "a1")]
        assert len(manager.history) == 1


class TestRollback:
    @pytest.mark.asyncio
    async def test_empty_ledger_is_noop(self):
        manager = TaskManager()
        assert await manager.rollback() == []

    @pytest.mark.asyncio
    async def test_reverse_order(self, journal, make_task, node, application, deployment):
        manager = TaskManager()
        for name, stage in (("t1", "initialize"), ("t2", "lock"), ("t3", "update")):
            await manager.execute(make_task(name), node, application, deployment, stage)
        journal.clear()

        failures = await manager.rollback()

        assert failures == []
        assert journal == [
            ("rollback", "t3", "n1", "a1"),
            ("rollback", "t2", "n1", "a1"),
            ("rollback", "t1", "n1", "a1"),
        ]
        assert manager.history == ()

    @pytest.mark.asyncio
    async def test_undo_failure_does_not_stop_remaining_undos(
        self, journal, make_task, node, application, deployment
    ):
        manager = TaskManager()
        await manager.execute(make_task("t1"), node, application, deployment, "lock")
        await manager.execute(
            make_task("t2", undo_fails=True), node, application, deployment, "update"
        )
        await manager.execute(make_task("t3"), node, application, deployment, "migrate")
        journal.clear()

        failures = await manager.rollback()

        assert [entry[1] for entry in journal] == ["t3", "t2", "t1"]
        assert len(failures) == 1
        assert failures[0].record.task.name == "t2"
        assert "undo of t2 failed" in str(failures[0].error)
        assert manager.history == ()

    @pytest.mark.asyncio
    async def test_dry_run_rollback_only_logs(
        self, journal, make_task, node, application
    ):
        deployment = Deployment(
            name="test", nodes=[node], applications=[application], dry_run=True
        )
        manager = TaskManager()
        await manager.execute(make_task("t1"), node, application, deployment, "lock")
        journal.clear()

        await manager.rollback()

        assert journal == []
        assert manager.history == ()


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_discards_without_undo(
        self, journal, make_task, node, application, deployment
    ):
        manager = TaskManager()
        await manager.execute(make_task("t1"), node, application, deployment, "lock")
        journal.clear()

        manager.reset()

        assert manager.history == ()
        assert journal == []
        assert await manager.rollback() == []
        assert journal == []
