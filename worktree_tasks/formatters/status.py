"""Status message formatting."""

from rich.text import Text

from worktree_tasks.constants import STATUS_STYLES, StatusType
from worktree_tasks.models.status import StatusMessage


def status_style(status_type: str) -> str:
    """Get the Rich style for a status type."""
    return STATUS_STYLES.get(status_type, STATUS_STYLES[StatusType.INFO])


def format_status(status: StatusMessage) -> Text:
    return Text(status.message, style=status_style(status.type))
