"""Hint bar formatting."""

from typing import Iterable

from rich.text import Text

from worktree_tasks.keys import describe_key
from worktree_tasks.state.actions import Action


def format_action(action: Action) -> Text:
    """Format an action as ``[shortcut]label``, greyed out when disabled."""
    shortcut = describe_key(action.shortcuts[0]) if action.shortcuts else ""
    disabled = action.is_disabled
    return Text.assemble(
        (f"[{shortcut}]", "dim" if disabled else "bold white"),
        (action.label, "dim"),
    )


def format_actions(actions: Iterable[Action]) -> Text:
    return Text("  ", style="dim").join(format_action(action) for action in actions)
