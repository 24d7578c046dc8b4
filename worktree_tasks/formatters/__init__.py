"""Formatting utilities for worktree-tasks.

- status: status message styling
- actions: hint bar formatting
"""

from .status import format_status, status_style
from .actions import format_action, format_actions

__all__ = [
    "format_status",
    "status_style",
    "format_action",
    "format_actions",
]
