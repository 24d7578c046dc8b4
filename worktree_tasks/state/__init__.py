"""Application state: key tracking, actions, navigation."""

from .actions import Action, ActionId, ActionRegistry
from .app_state import ApplicationState
from .key_state import KeyStateTracker
from .pages import Navigator, Page

__all__ = [
    "Action",
    "ActionId",
    "ActionRegistry",
    "ApplicationState",
    "KeyStateTracker",
    "Navigator",
    "Page",
]
