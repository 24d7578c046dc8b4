"""Shared constants for worktree-tasks."""

from dataclasses import dataclass
from typing import List, Tuple


@dataclass
class ColumnDefinition:
    """Definition of a worktree list column."""

    key: str
    width: int = 0  # 0 means share the remaining width


# Worktree list layout
COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("branch", 15),
    ColumnDefinition("details"),
]

APP_TITLE = "Worktree"

# Branch names containing one of these are never treated as task ids
RESERVED_BRANCH_MARKERS: Tuple[str, ...] = ("master", "solo-", "mob-", "fix-", "feat")

# Branches pinned to the top of the list, in order
PINNED_BRANCH_PREFIXES: Tuple[str, ...] = ("mob-", "solo-")

# Symbol constants
SYMBOL_RULE = "─"
SYMBOL_TASK = "▓"
SYMBOL_SELECT = "▾"
SECRET_MASK = "*"

# Terminal control sequences
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
CLEAR_SCREEN = "\x1b[H\x1b[2J\x1b[3J"
FRAME_START = "\x1b[H"
CLEAR_LINE_END = "\x1b[K"
CLEAR_BELOW = "\x1b[J"


class StatusType:
    """Kinds of user-visible status messages."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    CONFIRMATION = "confirmation"


# Rich styles per status type
STATUS_STYLES = {
    StatusType.ERROR: "red",
    StatusType.SUCCESS: "green",
    StatusType.CONFIRMATION: "yellow",
    StatusType.INFO: "dim",
}

# Seconds a success status stays on screen
SUCCESS_STATUS_TIMEOUT = 3.0
COPY_STATUS_TIMEOUT = 2.0
