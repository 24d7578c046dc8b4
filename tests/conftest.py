"""Pytest fixtures for worktree-tasks tests"""
import asyncio
import io
import logging
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest
from rich.console import Console

from worktree_tasks.app import WorktreeApp
from worktree_tasks.config import Config
from worktree_tasks.logging_config import NOISY_LOGGERS, ColoredFormatter
from worktree_tasks.models.task import Task, TaskList, TaskStatus
from worktree_tasks.services.clickup_service import ClickupService
from worktree_tasks.services.file_store import StoreFiles
from worktree_tasks.services.git_service import CommandResult, GitService
from worktree_tasks.state.key_state import KeyStateTracker


class FakeHandle:
    """Timer handle returned by FakeScheduler.call_later."""

    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Scheduler with manual time. Spawned coroutines run on ``settle()``."""

    def __init__(self):
        self.now = 0.0
        self.timers = []
        self.pending = []
        self.on_error = None

    def time(self):
        return self.now

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self.timers.append(handle)
        return handle

    def advance(self, seconds):
        self.now += seconds
        due = sorted(
            (h for h in self.timers if not h.cancelled and h.due <= self.now),
            key=lambda h: h.due,
        )
        for handle in due:
            self.timers.remove(handle)
            handle.callback()

    def spawn(self, coro):
        self.pending.append(coro)
        return coro

    async def run_blocking(self, func, *args, **kwargs):
        return func(*args, **kwargs)

    def settle(self):
        """Run spawned coroutines (and whatever they spawn) to completion."""
        while self.pending:
            coro = self.pending.pop(0)
            try:
                asyncio.run(coro)
            except Exception as e:
                if self.on_error is None:
                    raise
                self.on_error(e)

    def cancel_all(self):
        for coro in self.pending:
            coro.close()
        self.pending = []


def make_task(task_id, name="Some task", status_id="s1", status_label="to do", list_id="l1"):
    return Task(
        id=task_id,
        name=name,
        status=TaskStatus(id=status_id, label=status_label),
        list=TaskList(id=list_id, name="Sprint"),
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)



@pytest.fixture
def root_logger():
    """Drop the handlers setup_logging attached to the root logger."""
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if isinstance(handler, logging.FileHandler) or isinstance(handler.formatter, ColoredFormatter):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Keep the default branch name independent of the local git setup
    repo.git.branch("-M", "master")

    yield repo

    repo.close()


@pytest.fixture
def keys():
    return KeyStateTracker()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def config(temp_dir):
    return Config(
        store_dir=str(temp_dir / "store"),
        last_dir_file=str(temp_dir / "last-dir"),
    )


@pytest.fixture
def files(config):
    return StoreFiles.open(config.store_dir)


@pytest.fixture
def mock_git_service():
    service = Mock(spec=GitService)
    service.repo_path = "/work/repo"
    service.list_worktrees.return_value = [
        "/work/feature-x",
        "/work/abc123",
        "/work/master",
        "/work/mob-pairing",
    ]
    service.current_branch.return_value = "abc123"
    service.is_inside_worktree.return_value = True
    service.run.return_value = CommandResult(0, "", "")
    return service


@pytest.fixture
def mock_provider():
    provider = Mock(spec=ClickupService)
    provider.get_task.side_effect = lambda task_id: make_task(task_id, name=f"Task {task_id}")
    provider.get_task_url.side_effect = lambda task_id: f"https://app.clickup.com/t/{task_id}"
    return provider


@pytest.fixture
def make_app(config, files, scheduler, mock_git_service, mock_provider, monkeypatch):
    """Build a loaded app that renders into a string buffer."""
    monkeypatch.delenv(config.token_env_var, raising=False)

    def factory(token=None):
        if token:
            files.token.write(token)
        console = Console(file=io.StringIO(), width=100, color_system=None, highlight=False)
        app = WorktreeApp(
            config,
            git_service=mock_git_service,
            provider=mock_provider,
            files=files,
            scheduler=scheduler,
            console=console,
            output=io.StringIO(),
        )
        scheduler.on_error = app.handle_unexpected_error
        app.load()
        app.tick()
        return app

    return factory


def press(app, *keys):
    """Feed key chunks one per frame, letting each synthesized release fire."""
    frame = ""
    for key in keys:
        app.handle_input(key)
        frame = app.tick()
        app.scheduler.advance(app.config.key_release_delay)
    return frame
