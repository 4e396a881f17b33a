"""Tests for the shell-backed tasks."""

import pytest
from stagecoach.domain.entities.application import Application
from stagecoach.domain.entities.deployment import Deployment
from stagecoach.domain.exceptions import ConfigurationError, DeploymentLockedError
from stagecoach.domain.ports.shell_port import ShellCommandPort
from stagecoach.domain.value_objects.node import Node
from stagecoach.domain.value_objects.release_identifier import ReleaseIdentifier
from stagecoach.infrastructure.tasks import (
    TASK_TYPES,
    CleanupReleasesTask,
    CreateDirectoriesTask,
    DumpDatabaseTask,
    LockDeploymentTask,
    RsyncTransferTask,
    ShellTask,
    SymlinkReleaseTask,
    UnlockDeploymentTask,
)
from stagecoach.infrastructure.tasks.base import quote_arguments, substitute


class FakeShell(ShellCommandPort):
    """Records commands and answers them from a prefix -> output table."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.executed = []
        self.simulated = []

    def _answer(self, command):
        text = command if isinstance(command, str) else " && ".join(command)
        for prefix, output in self.responses.items():
            if text.startswith(prefix):
                return output
        return ""

    async def execute(self, command, node, deployment, ignore_errors=False):
        self.executed.append((command, node.name, ignore_errors))
        return self._answer(command)

    async def simulate(self, command, node, deployment):
        self.simulated.append((command, node.name))
        return ""


@pytest.fixture
def node():
    return Node(name="web1", host="web1.example.com", user="deploy", port=2222)


@pytest.fixture
def app(node):
    return Application(name="shop", deployment_path="/srv/shop", nodes=[node])


@pytest.fixture
def deployment(node, app):
    return Deployment(
        name="prod",
        nodes=[node],
        applications=[app],
        release_identifier=ReleaseIdentifier("20261019120000"),
    )


class TestHelpers:
    def test_quote_arguments_quotes_everything(self):
        assert quote_arguments(["ls", "-la"]) == "'ls' '-la'"

    def test_quote_arguments_escapes_quotes(self):
        assert quote_arguments(["it's"]) == "'it'\\''s'"

    def test_substitute_leaves_shell_braces(self):
        assert substitute("cd {release_path} && echo ${HOME}", {"release_path": "/r"}) == (
            "cd /r && echo ${HOME}"
        )

    def test_task_types_registry(self):
        assert TASK_TYPES["shell"] is ShellTask
        assert TASK_TYPES["dump_database"] is DumpDatabaseTask
        assert len(TASK_TYPES) == 8

    def test_default_name_is_class_name(self):
        assert ShellTask(FakeShell()).name == "ShellTask"
        assert ShellTask(FakeShell(), name="warmup").name == "warmup"


class TestShellTask:
    @pytest.mark.asyncio
    async def test_runs_command_with_placeholders(self, node, app, deployment):
        shell = FakeShell()
        task = ShellTask(shell)

        await task.execute(
            node, app, deployment, {"command": "cd {release_path} && composer install"}
        )

        assert shell.executed == [
            (["cd /srv/shop/releases/20261019120000 && composer install"], "web1", False)
        ]

    @pytest.mark.asyncio
    async def test_missing_command(self, node, app, deployment):
        task = ShellTask(FakeShell(), name="warmup")
        with pytest.raises(ConfigurationError, match='Missing option "command" for task warmup'):
            await task.execute(node, app, deployment, {})

    @pytest.mark.asyncio
    async def test_ignore_errors(self, node, app, deployment):
        shell = FakeShell()
        await ShellTask(shell).execute(
            node, app, deployment, {"command": ["a", "b"], "ignore_errors": True}
        )
        assert shell.executed == [(["a", "b"], "web1", True)]

    @pytest.mark.asyncio
    async def test_rollback_command(self, node, app, deployment):
        shell = FakeShell()
        await ShellTask(shell).rollback(
            node, app, deployment, {"rollback_command": "rm -rf {release_path}"}
        )
        assert shell.executed == [
            (["rm -rf /srv/shop/releases/20261019120000"], "web1", True)
        ]

    @pytest.mark.asyncio
    async def test_rollback_without_command_is_noop(self, node, app, deployment):
        shell = FakeShell()
        await ShellTask(shell).rollback(node, app, deployment, {"command": "x"})
        assert shell.executed == []

    @pytest.mark.asyncio
    async def test_simulate_uses_shell_simulate(self, node, app):
        deployment = Deployment(name="prod", nodes=[node], applications=[app], dry_run=True)
        shell = FakeShell()

        await ShellTask(shell).simulate(node, app, deployment, {"command": "uptime"})

        assert shell.executed == []
        assert shell.simulated == [(["uptime"], "web1")]


class TestLockTasks:
    @pytest.mark.asyncio
    async def test_lock_acquired(self, node, app, deployment):
        shell = FakeShell()
        await LockDeploymentTask(shell).execute(node, app, deployment, {})

        assert len(shell.executed) == 2
        check, write = shell.executed[0][0], shell.executed[1][0]
        assert "cat /srv/shop/.stagecoach/deploy.lock" in check
        assert write == [
            "mkdir -p /srv/shop/.stagecoach",
            "echo 20261019120000 > /srv/shop/.stagecoach/deploy.lock",
        ]

    @pytest.mark.asyncio
    async def test_lock_held_by_other_release(self, node, app, deployment):
        shell = FakeShell({"if [ -f": "20261018000000"})
        with pytest.raises(DeploymentLockedError, match="locked by release 20261018000000"):
            await LockDeploymentTask(shell).execute(node, app, deployment, {})
        assert len(shell.executed) == 1

    @pytest.mark.asyncio
    async def test_lock_held_by_same_release(self, node, app, deployment):
        shell = FakeShell({"if [ -f": "20261019120000"})
        await LockDeploymentTask(shell).execute(node, app, deployment, {})
        assert len(shell.executed) == 2

    @pytest.mark.asyncio
    async def test_force_lock_skips_check(self, node, app, deployment):
        shell = FakeShell({"if [ -f": "other"})
        await LockDeploymentTask(shell).execute(node, app, deployment, {"force_lock": True})
        assert len(shell.executed) == 1

    @pytest.mark.asyncio
    async def test_lock_rollback_and_unlock_remove_file(self, node, app, deployment):
        shell = FakeShell()
        await LockDeploymentTask(shell).rollback(node, app, deployment, {})
        await UnlockDeploymentTask(shell).execute(node, app, deployment, {})
        assert [c[0] for c in shell.executed] == [
            "rm -f /srv/shop/.stagecoach/deploy.lock",
            "rm -f /srv/shop/.stagecoach/deploy.lock",
        ]

    @pytest.mark.asyncio
    async def test_requires_deployment_path(self, node, deployment):
        app = Application(name="nopath", nodes=[node])
        with pytest.raises(ConfigurationError, match="No deployment path"):
            await LockDeploymentTask(FakeShell()).execute(node, app, deployment, {})


class TestReleaseTasks:
    @pytest.mark.asyncio
    async def test_create_directories(self, node, app, deployment):
        shell = FakeShell()
        await CreateDirectoriesTask(shell).execute(node, app, deployment, {})
        assert shell.executed == [
            ("mkdir -p /srv/shop /srv/shop/releases /srv/shop/shared", "web1", False)
        ]

    @pytest.mark.asyncio
    async def test_rsync_to_remote_node(self, node, app, deployment):
        shell = FakeShell()
        await RsyncTransferTask(shell).execute(
            node, app, deployment, {"package_path": "/build/shop/"}
        )
        assert shell.executed == [
            ("mkdir -p /srv/shop/releases/20261019120000", "web1", False),
            (
                "rsync -az --delete -e 'ssh -p 2222' /build/shop/ "
                "deploy@web1.example.com:/srv/shop/releases/20261019120000/",
                "localhost",
                False,
            ),
        ]

    @pytest.mark.asyncio
    async def test_rsync_to_local_node(self, app, deployment):
        local = Node(name="localhost", host="localhost")
        shell = FakeShell()
        await RsyncTransferTask(shell).execute(
            local, app, deployment, {"package_path": "/build", "rsync_flags": "-a"}
        )
        assert shell.executed[1][0] == (
            "rsync -a /build/ /srv/shop/releases/20261019120000/"
        )

    @pytest.mark.asyncio
    async def test_rsync_requires_package_path(self, node, app, deployment):
        with pytest.raises(ConfigurationError, match="package_path"):
            await RsyncTransferTask(FakeShell()).execute(node, app, deployment, {})

    @pytest.mark.asyncio
    async def test_rsync_rollback_removes_release(self, node, app, deployment):
        shell = FakeShell()
        await RsyncTransferTask(shell).rollback(node, app, deployment, {})
        assert shell.executed == [
            ("rm -rf /srv/shop/releases/20261019120000", "web1", False)
        ]

    @pytest.mark.asyncio
    async def test_symlink_switches_current(self, node, app, deployment):
        shell = FakeShell()
        await SymlinkReleaseTask(shell).execute(node, app, deployment, {})
        assert shell.executed[0][0] == [
            "cd /srv/shop/releases",
            "rm -f ./previous",
            "if [ -L ./current ]; then mv ./current ./previous; fi",
            "ln -s ./20261019120000 ./next",
            "mv ./next ./current",
        ]

    @pytest.mark.asyncio
    async def test_symlink_rollback_restores_previous(self, node, app, deployment):
        shell = FakeShell()
        await SymlinkReleaseTask(shell).rollback(node, app, deployment, {})
        assert shell.executed[0][0] == [
            "cd /srv/shop/releases",
            "rm -f ./current",
            "if [ -L ./previous ]; then mv ./previous ./current; fi",
        ]

    @pytest.mark.asyncio
    async def test_cleanup_keeps_newest_and_protected(self, node, app, deployment):
        listing = "\n".join(
            [
                "20261001000000",
                "20261002000000",
                "20261003000000",
                "20261004000000",
                "20261005000000",
                "20261019120000",
                "current",
                "previous",
            ]
        )
        shell = FakeShell(
            {"ls -1": listing, "readlink": "./20261019120000\n./20261002000000"}
        )

        await CleanupReleasesTask(shell).execute(node, app, deployment, {"keep_releases": 2})

        assert shell.executed[1][2] is True
        assert shell.executed[-1][0] == (
            "rm -rf /srv/shop/releases/20261001000000 /srv/shop/releases/20261003000000"
        )

    @pytest.mark.asyncio
    async def test_cleanup_nothing_to_remove(self, node, app, deployment):
        shell = FakeShell({"ls -1": "20261019120000\ncurrent"})
        await CleanupReleasesTask(shell).execute(node, app, deployment, {})
        assert len(shell.executed) == 2


class TestDumpDatabaseTask:
    OPTIONS = {
        "source_host": "localhost",
        "source_user": "user",
        "source_password": "(pass)",
        "source_database": "db",
        "target_host": "localhost",
        "target_user": "user",
        "target_password": "(pass)",
        "target_database": "db",
    }

    def test_command_quotes_every_argument(self):
        node = Node(name="hostname", host="hostname")
        command = DumpDatabaseTask(FakeShell()).build_command(node, self.OPTIONS)
        assert command == (
            "'mysqldump' '-h' 'localhost' '-u' 'user' '-p(pass)' 'db' | "
            "'ssh' 'hostname' "
            "''\\''mysql'\\'' '\\''-h'\\'' '\\''localhost'\\'' '\\''-u'\\'' "
            "'\\''user'\\'' '\\''-p(pass)'\\'' '\\''db'\\'''"
        )

    def test_command_with_user_and_port(self, node):
        command = DumpDatabaseTask(FakeShell()).build_command(node, self.OPTIONS)
        assert "'ssh' '-p' '2222' 'deploy@web1.example.com' " in command

    @pytest.mark.parametrize("missing", ["source_host", "target_database"])
    def test_missing_option(self, missing):
        options = {k: v for k, v in self.OPTIONS.items() if k != missing}
        task = DumpDatabaseTask(FakeShell())
        with pytest.raises(ConfigurationError, match=f'Missing option "{missing}"'):
            task.build_command(Node(name="h", host="hostname"), options)

    @pytest.mark.asyncio
    async def test_runs_on_localhost(self, node, app, deployment):
        shell = FakeShell()
        await DumpDatabaseTask(shell).execute(node, app, deployment, self.OPTIONS)
        assert shell.executed[0][1] == "localhost"
