"""Worktree data models."""

import os
import re
from typing import Iterable, Optional

from worktree_tasks.constants import RESERVED_BRANCH_MARKERS

_TASK_ID_RE = re.compile(r"^\w+$")


def branch_from_path(path: str) -> str:
    """The trailing path component of a worktree is its branch name."""
    return os.path.basename(path.rstrip("/"))


def is_task(
    branch: str,
    reserved: Iterable[str] = RESERVED_BRANCH_MARKERS,
    main_branch: Optional[str] = None,
) -> bool:
    """Check whether a branch name looks like a ClickUp task id.

    The configured main branch is never a task, whatever its name.
    """
    if main_branch and branch == main_branch:
        return False
    if not _TASK_ID_RE.match(branch):
        return False
    return not any(marker in branch for marker in reserved)
