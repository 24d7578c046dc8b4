"""
worktree-tasks - browse git worktrees alongside their ClickUp tasks
"""

from .__version__ import __version__
from .app import WorktreeApp
from .cli.main import main

__all__ = ["WorktreeApp", "main", "__version__"]
