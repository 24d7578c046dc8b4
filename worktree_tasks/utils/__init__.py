"""Utility functions for worktree-tasks."""

from .scheduling import RunOnce, Scheduler

__all__ = ["RunOnce", "Scheduler"]
