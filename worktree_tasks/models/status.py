"""Status message model."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StatusMessage:
    """A user-visible message, either global or attached to one worktree row."""

    type: str  # one of constants.StatusType
    message: str
    expires_at: Optional[float] = None  # None = sticky until cleared

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at
