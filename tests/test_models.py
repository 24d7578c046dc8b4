"""Tests for worktree and status models"""
import pytest

from conftest import make_task
from worktree_tasks.models import StatusMessage, TaskStatus, branch_from_path, is_task


class TestTaskBranches:

    @pytest.mark.parametrize("branch", ["abc123", "86b0xyz", "A_1"])
    def test_task_ids(self, branch):
        assert is_task(branch)

    @pytest.mark.parametrize("branch", [
        "master", "feature-x", "mob-pairing", "solo-spike", "fix-login", "feature", "a/b", "",
    ])
    def test_not_task_ids(self, branch):
        assert not is_task(branch)

    def test_custom_reserved_markers(self):
        assert not is_task("main", reserved=("main",))

    def test_main_branch_is_never_a_task(self):
        assert is_task("main")
        assert not is_task("main", main_branch="main")
        assert is_task("abc123", main_branch="main")

    def test_branch_from_path(self):
        assert branch_from_path("/work/abc123") == "abc123"
        assert branch_from_path("/work/abc123/") == "abc123"


class TestStatusMessage:

    def test_sticky(self):
        assert not StatusMessage("error", "failed").is_expired(1e9)

    def test_deadline(self):
        status = StatusMessage("success", "done", expires_at=3.0)
        assert not status.is_expired(2.9)
        assert status.is_expired(3.0)


class TestTask:

    def test_with_status_returns_copy(self):
        task = make_task("abc123")
        moved = task.with_status(TaskStatus(id="s2", label="done"))
        assert moved.status.label == "done"
        assert task.status.label == "to do"
        assert moved.list == task.list
