"""Declarative form widgets drawn straight onto the terminal frame.

Elements are a tagged variant (``FieldKind``). The container owns the value
map and the focus index; on every ``update()`` it consumes the keys that
apply to the focused element's kind and pushes its values back down, so
elements always render from the container's single source of truth.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from rich.text import Text

from worktree_tasks import keys as Keys
from worktree_tasks.constants import SECRET_MASK, SYMBOL_SELECT
from worktree_tasks.state.key_state import KeyStateTracker

_TEXT_KEY_RE = re.compile(r"[\w \-/]")

STYLE_FOCUSED = "black on white"
STYLE_FOCUSED_INVALID = "bright_white on red"
STYLE_INVALID = "red"


class FieldKind(Enum):
    TEXT = "text"
    SECRET = "secret"
    CHECKBOX = "checkbox"
    SELECT = "select"


@dataclass(frozen=True)
class SelectOption:
    id: str
    label: str


class FormElement:
    """Common state of every form field."""

    kind: FieldKind
    empty_value: Any = ""

    def __init__(self, name: str, size: int = 0, default: Any = None):
        self.name = name
        self.size = size
        self.default = self.empty_value if default is None else default
        self.value = self.default
        self.focused = False
        self.valid = True

    def focus(self) -> "FormElement":
        self.focused = True
        return self

    def blur(self) -> "FormElement":
        self.focused = False
        return self

    def set_valid(self) -> "FormElement":
        self.valid = True
        return self

    def set_invalid(self) -> "FormElement":
        self.valid = False
        return self

    def set_value(self, value: Any) -> None:
        self.value = value

    def _wrap(self, content: Text) -> Text:
        """Brackets when idle, plain padding when focused."""
        if self.focused:
            return Text.assemble(" ", content, " ")
        return Text.assemble("[", content, "]")

    def render(self) -> Text:
        raise NotImplementedError


class TextInput(FormElement):
    """Single line text field."""

    kind = FieldKind.TEXT
    secret = False

    def __init__(self, name: str, size: int = 0, default: str = "", placeholder: str = ""):
        super().__init__(name, size, default)
        self.placeholder = placeholder

    def display_value(self) -> str:
        if self.secret:
            return SECRET_MASK * len(self.value)
        return self.value

    def render(self) -> Text:
        if self.value:
            shown = Text(self.display_value())
        else:
            shown = Text(self.placeholder, style="dim")
        width = max(self.size, shown.cell_len)
        shown.pad_right(width - shown.cell_len)

        content = self._wrap(shown)
        if self.focused:
            content.stylize(STYLE_FOCUSED if self.valid else STYLE_FOCUSED_INVALID)
        elif not self.valid:
            content.stylize(STYLE_INVALID)
        return Text.assemble(f"{self.name}:", content)


class SecretInput(TextInput):
    """Text field rendered masked. The stored value is never altered."""

    kind = FieldKind.SECRET
    secret = True


class Checkbox(FormElement):
    kind = FieldKind.CHECKBOX
    empty_value = False

    def __init__(self, name: str, default: bool = False):
        super().__init__(name, size=3, default=default)

    def toggle(self) -> "Checkbox":
        self.set_value(not self.value)
        return self

    def render(self) -> Text:
        content = self._wrap(Text("YES" if self.value else "NO "))
        if self.focused:
            content.stylize(STYLE_FOCUSED)
        return Text.assemble(f"{self.name}: ", content)


class Select(FormElement):
    """Single choice among options that usually arrive after construction."""

    kind = FieldKind.SELECT
    default_size = 30

    def __init__(self, name: str = "select", size: int = 0):
        super().__init__(name, size)
        self.options: List[SelectOption] = []
        self.source: Optional[str] = None  # what the current options were loaded for

    def set_options(self, options: List[SelectOption], source: Optional[str] = None) -> "Select":
        self.options = list(options)
        self.source = source
        return self

    def clear_options(self) -> "Select":
        return self.set_options([])

    def selected_option(self) -> Optional[SelectOption]:
        return next((o for o in self.options if o.id == self.value), None)

    def index_of(self, option_id: Any) -> int:
        return next((i for i, o in enumerate(self.options) if o.id == option_id), -1)

    def get_size(self) -> int:
        if self.size:
            return self.size
        if self.options:
            return max(len(option.label) for option in self.options)
        return self.default_size

    def render(self) -> Text:
        size = self.get_size()
        selected = self.selected_option()
        if not self.options:
            body = "loading...".ljust(size)
        elif selected:
            body = selected.label[:size].ljust(size)
        else:
            body = " " * size

        content = self._wrap(Text(f"{body} {SYMBOL_SELECT}"))
        if self.focused:
            content.stylize("reverse" if self.options else "black on grey50")
        return Text.assemble(f"{self.name}:", content)


class FormContainer:
    """An ordered group of fields with one focus and one value map."""

    def __init__(self, keys: KeyStateTracker):
        self.keys = keys
        self.elements: List[FormElement] = []
        self.focused = 0
        self.breaks: Set[int] = set()
        self.value: Dict[str, Any] = {}
        self._handlers: Dict[FieldKind, Callable[[FormElement], None]] = {
            FieldKind.TEXT: self._update_text,
            FieldKind.SECRET: self._update_text,
            FieldKind.CHECKBOX: self._update_checkbox,
            FieldKind.SELECT: self._update_select,
        }

    def add(self, element: FormElement, new_line: bool = True) -> "FormContainer":
        """Register ``element``. Adding a name twice does nothing."""
        if any(el.name == element.name for el in self.elements):
            return self
        self.elements.append(element)
        self.value.setdefault(element.name, element.default)
        if new_line:
            self.breaks.add(len(self.elements) - 1)
        return self

    def get(self, name: str) -> Optional[FormElement]:
        return next((el for el in self.elements if el.name == name), None)

    def has_focus(self) -> bool:
        return 0 <= self.focused < len(self.elements)

    def focused_element(self) -> Optional[FormElement]:
        return self.elements[self.focused] if self.has_focus() else None

    def focus_next(self) -> "FormContainer":
        self.focused = max(0, min(self.focused + 1, len(self.elements) - 1))
        return self

    def focus_previous(self) -> "FormContainer":
        self.focused = max(0, self.focused - 1)
        return self

    def clear(self) -> "FormContainer":
        self.value = {}
        return self

    def reset(self) -> "FormContainer":
        """Back to declared defaults with the first field focused."""
        self.focused = 0
        self.clear().value.update({el.name: el.default for el in self.elements})
        for element in self.elements:
            element.set_valid()
        self._push_values()
        return self

    def is_valid(self) -> bool:
        return all(element.valid for element in self.elements)

    def update(self) -> "FormContainer":
        """Apply this frame's held keys to the focused field."""
        self.keys.consume_key(Keys.TAB, self.focus_next)
        self.keys.consume_key(Keys.SHIFT_TAB, self.focus_previous)

        focused = self.focused_element()
        if focused is not None:
            self._handlers[focused.kind](focused)

        self._push_values()
        return self

    def _push_values(self) -> None:
        for element in self.elements:
            element.set_value(self.value.get(element.name, element.default))

    def _update_text(self, element: FormElement) -> None:
        def edit(key: str) -> None:
            current = self.value.get(element.name) or ""
            if key == Keys.BACKSPACE:
                self.value[element.name] = current[:-1]
            elif _TEXT_KEY_RE.fullmatch(key):
                self.value[element.name] = current + key

        self.keys.consume_any_key(edit)

    def _update_checkbox(self, element: FormElement) -> None:
        def toggle() -> None:
            self.value[element.name] = not self.value.get(element.name)

        self.keys.consume_key(Keys.SPACE, toggle)

    def _update_select(self, element: "Select") -> None:
        if not self.value.get(element.name):
            self.value[element.name] = element.options[0].id if element.options else ""
        if not element.options:
            return

        def move(step: int) -> Callable[[], None]:
            def apply() -> None:
                index = element.index_of(self.value.get(element.name)) + step
                index = max(0, min(len(element.options) - 1, index))
                self.value[element.name] = element.options[index].id
            return apply

        for key in ("j", Keys.ARROW_DOWN):
            self.keys.consume_key(key, move(1))
        for key in ("k", Keys.ARROW_UP):
            self.keys.consume_key(key, move(-1))

    def render(self) -> Text:
        """Fields right-aligned on their labels; each field ends a line unless told otherwise."""
        label_width = max([1] + [len(el.name) for el in self.elements])
        output = Text()
        for index, element in enumerate(self.elements):
            if index == self.focused:
                element.focus()
            else:
                element.blur()
            output.append(" " * (label_width + 1 - len(element.name)))
            output.append_text(element.render())
            if index in self.breaks:
                output.append("\n")
        return output
