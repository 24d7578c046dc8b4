"""Page navigation with a single-slot history."""

from enum import Enum
from typing import Callable, Dict, List, Optional

from worktree_tasks.logging_config import get_logger

logger = get_logger(__name__)


class Page(Enum):
    """Top-level UI modes. Exactly one is current."""

    IDLE = "idle"
    UPDATE = "update"
    TOKEN = "token"
    ADD = "add"
    EDIT_TASK = "edit-task"
    DELETE_WORKTREE = "delete-worktree"
    DELETE_BRANCH = "delete-branch"


BROWSING_PAGES = (Page.IDLE, Page.UPDATE)
DELETE_PAGES = (Page.DELETE_WORKTREE, Page.DELETE_BRANCH)


class Navigator:
    """Current page plus the page visited right before it.

    Only one previous page is remembered: entering the same page twice
    loses anything deeper.
    """

    def __init__(self, initial: Page = Page.IDLE):
        self.page = initial
        self.last_page: Optional[Page] = None
        self._enter_hooks: Dict[Page, List[Callable[[], None]]] = {}

    def on_enter(self, page: Page, hook: Callable[[], None]) -> None:
        """Run ``hook`` every time ``page`` is entered."""
        self._enter_hooks.setdefault(page, []).append(hook)

    def to_page(self, page: Page) -> None:
        logger.debug(f"Page {self.page.value} -> {page.value}")
        self.last_page = self.page
        self.page = page
        for hook in self._enter_hooks.get(page, []):
            hook()

    def previous_page(self) -> None:
        last = self.last_page
        if last is not None:
            self.to_page(last)

    @property
    def is_browsing(self) -> bool:
        return self.page in BROWSING_PAGES

    @property
    def is_deleting(self) -> bool:
        return self.page in DELETE_PAGES
