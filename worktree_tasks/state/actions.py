"""Keyboard-triggered actions scoped to the current page."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from worktree_tasks.logging_config import get_logger

logger = get_logger(__name__)

Rule = Union[bool, Callable[[], bool]]


class ActionId(Enum):
    """Every action the application can register. The value is its label."""

    ADD = "add"
    DELETE = "delete"
    COPY = "copy"
    OPEN = "open"
    PULL_REQUEST = "pull request"
    VIEW = "view"
    UPDATE = "update"
    EDIT = "edit"
    TOKEN = "token"
    ALL = "all"
    SELECTED = "selected"
    BACK = "back"
    SET_TOKEN = "set token"
    YES = "yes"
    NO = "no"
    CREATE = "create"
    QUIT = "quit"


def _evaluate(rule: Rule) -> bool:
    return rule() if callable(rule) else bool(rule)


@dataclass
class Action:
    """A named operation bound to one or more key tokens.

    ``hidden`` only controls the hint bar; hidden actions still fire.
    ``disabled`` removes the action from dispatch.
    """

    id: ActionId
    callback: Callable[[], Any]
    label: Optional[str] = None
    shortcut: Union[str, Sequence[str], None] = None
    hidden: Rule = False
    disabled: Rule = False
    shortcuts: Tuple[str, ...] = field(init=False)

    def __post_init__(self):
        if self.label is None:
            self.label = self.id.value
        if self.shortcut is None:
            self.shortcuts = (self.label[0],)
        elif isinstance(self.shortcut, str):
            self.shortcuts = (self.shortcut,)
        else:
            self.shortcuts = tuple(self.shortcut)

    @property
    def is_hidden(self) -> bool:
        return _evaluate(self.hidden)

    @property
    def is_disabled(self) -> bool:
        return _evaluate(self.disabled)

    def matches(self, key: str) -> bool:
        return key in self.shortcuts


class ActionRegistry:
    """The live action list, rebuilt every frame for the current page."""

    def __init__(self):
        self.actions: List[Action] = []

    def clear(self) -> None:
        self.actions = []

    def add(self, action: Action) -> "ActionRegistry":
        for existing in self.actions:
            overlap = set(existing.shortcuts) & set(action.shortcuts)
            if overlap:
                logger.debug(
                    f"Action '{action.label}' shares shortcut {sorted(overlap)!r} "
                    f"with '{existing.label}'"
                )
        self.actions.append(action)
        return self

    def add_actions(self, actions: Iterable[Action]) -> "ActionRegistry":
        for action in actions:
            self.add(action)
        return self

    def setup(
        self,
        page: Any,
        pages: Dict[Any, Iterable[Action]],
        defaults: Iterable[Action] = (),
    ) -> "ActionRegistry":
        """Materialize the current page's table followed by the defaults."""
        self.clear()
        self.add_actions(pages.get(page, ()))
        self.add_actions(defaults)
        return self

    def get(self, action_id: ActionId) -> Optional[Action]:
        return next((a for a in self.actions if a.id == action_id), None)

    def visible(self) -> List[Action]:
        return [action for action in self.actions if not action.is_hidden]

    def dispatch(
        self,
        key: str,
        consume: Callable[[str, Callable[[], Any]], Any],
    ) -> Optional[Action]:
        """Fire the first enabled action bound to ``key``.

        ``consume`` is the key tracker's ``consume_key`` so the action
        clears the held flag and form widgets never see the same press.
        Only one action fires per key.
        """
        for action in self.actions:
            if action.is_disabled:
                continue
            if action.matches(key):
                logger.debug(f"Dispatching '{action.label}'")
                consume(key, action.callback)
                return action
        return None
