"""Data models for worktree-tasks."""

from .status import StatusMessage
from .task import Task, TaskList, TaskStatus
from .worktree import branch_from_path, is_task

__all__ = [
    "StatusMessage",
    "Task",
    "TaskList",
    "TaskStatus",
    "branch_from_path",
    "is_task",
]
