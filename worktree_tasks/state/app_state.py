"""The single owned application state.

The render loop, the input loop and every action callback receive the same
``ApplicationState`` instance. Asynchronous operations never mutate it after
an ``await``; they ``post()`` a closure that the next render tick applies.
"""

from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from worktree_tasks.constants import PINNED_BRANCH_PREFIXES
from worktree_tasks.logging_config import get_logger
from worktree_tasks.models.status import StatusMessage
from worktree_tasks.models.task import Task
from worktree_tasks.models.worktree import branch_from_path, is_task
from worktree_tasks.state.actions import ActionRegistry
from worktree_tasks.state.key_state import KeyStateTracker
from worktree_tasks.state.pages import Navigator, Page

logger = get_logger(__name__)


def _path_sort_key(path: str, main_branch: str) -> int:
    branch = branch_from_path(path)
    if branch == main_branch:
        return 0
    if branch.startswith(PINNED_BRANCH_PREFIXES):
        return 1
    return 2


class ApplicationState:
    """Page, selection, statuses, task cache and key state of one session."""

    def __init__(self, clock: Callable[[], float], main_branch: str = "master"):
        self.clock = clock
        self.main_branch = main_branch
        self.navigator = Navigator(Page.IDLE)
        self.keys = KeyStateTracker()
        self.actions = ActionRegistry()
        self.selected = 0
        self.paths: List[str] = []
        self.task_ids: List[str] = []
        self.tasks: Dict[str, Task] = {}
        self.task_status: Dict[str, Optional[StatusMessage]] = {}
        self.status: Optional[StatusMessage] = None
        self.token: Optional[str] = None
        self._inbox: Deque[Callable[[], None]] = deque()

    # Navigation

    @property
    def page(self) -> Page:
        return self.navigator.page

    def to_page(self, page: Page) -> None:
        self.navigator.to_page(page)

    def previous_page(self) -> None:
        self.navigator.previous_page()

    # Worktree list and selection

    def set_paths(self, paths: List[str]) -> None:
        """Store worktree paths with the main branch and pinned branches first."""
        self.paths = sorted(paths, key=lambda p: _path_sort_key(p, self.main_branch))
        self.task_ids = [b for b in map(branch_from_path, self.paths) if self.is_task_branch(b)]
        if self.paths:
            self.selected = min(self.selected, len(self.paths) - 1)
        else:
            self.selected = 0

    def select_next(self) -> None:
        self.selected = max(0, min(len(self.paths) - 1, self.selected + 1))

    def select_previous(self) -> None:
        self.selected = max(0, self.selected - 1)

    def select_first(self) -> None:
        self.selected = 0

    def select_last(self) -> None:
        self.selected = max(0, len(self.paths) - 1)

    def select_branch(self, branch: str) -> None:
        """Select the worktree whose path ends with ``branch`` (first row if none)."""
        if not branch:
            self.selected = 0
            return
        index = next((i for i, p in enumerate(self.paths) if branch_from_path(p) == branch), 0)
        self.selected = index

    def selected_path(self) -> Optional[str]:
        if 0 <= self.selected < len(self.paths):
            return self.paths[self.selected]
        return None

    def selected_branch(self) -> Optional[str]:
        path = self.selected_path()
        return branch_from_path(path) if path else None

    def selected_is_task(self) -> bool:
        branch = self.selected_branch()
        return bool(branch) and self.is_task_branch(branch)

    def is_task_branch(self, branch: str) -> bool:
        return is_task(branch, main_branch=self.main_branch)

    def remove_branch(self, branch: str) -> None:
        """Drop a worktree from the list and move the selection up one row."""
        selected = max(0, self.selected - 1)
        self.set_paths([p for p in self.paths if branch_from_path(p) != branch])
        self.selected = min(selected, max(0, len(self.paths) - 1))

    # Statuses

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        return self.clock() + timeout if timeout else None

    def set_status(self, type: str, message: str, timeout: Optional[float] = None) -> None:
        self.status = StatusMessage(type, message, self._deadline(timeout))

    def clear_status(self) -> None:
        self.status = None

    def set_task_status(
        self, task_id: str, type: str, message: str, timeout: Optional[float] = None
    ) -> None:
        self.task_status[task_id] = StatusMessage(type, message, self._deadline(timeout))

    def clear_task_status(self, task_id: Optional[str] = None) -> None:
        if task_id:
            self.task_status[task_id] = None
        else:
            self.task_status = {}

    def expire_statuses(self) -> None:
        now = self.clock()
        if self.status and self.status.is_expired(now):
            self.status = None
        for task_id, status in list(self.task_status.items()):
            if status and status.is_expired(now):
                self.task_status[task_id] = None

    # Completion inbox

    def post(self, message: Callable[[], None]) -> None:
        """Queue a state mutation for the next render tick."""
        self._inbox.append(message)

    def drain_inbox(self) -> int:
        """Apply queued mutations in arrival order. Returns how many ran."""
        count = 0
        while self._inbox:
            message = self._inbox.popleft()
            message()
            count += 1
        return count

    @property
    def pending_messages(self) -> int:
        return len(self._inbox)
