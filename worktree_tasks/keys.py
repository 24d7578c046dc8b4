"""Raw terminal input sequences for the keys the application understands.

Incoming chunks are compared against these constants with plain equality.
The supported sequences are fixed-length and never a prefix of one another
for the terminal families targeted, so no prefix matching is needed.
"""

from typing import Dict

ENTER = "\r"
TAB = "\t"
SHIFT_TAB = "\x1b[Z"
SPACE = " "
ESC = "\x1b"
BACKSPACE = "\x7f"
ARROW_UP = "\x1b[A"
ARROW_DOWN = "\x1b[B"
ARROW_RIGHT = "\x1b[C"
ARROW_LEFT = "\x1b[D"
SHIFT_ARROW_UP = "\x1b[1;2A"
SHIFT_ARROW_DOWN = "\x1b[1;2B"

# Hint bar labels for keys that have no printable form
KEY_TEXT: Dict[str, str] = {
    ENTER: "enter",
    ESC: "esc",
    TAB: "tab",
    SHIFT_TAB: "shift-tab",
    SPACE: "space",
    BACKSPACE: "backspace",
    ARROW_UP: "↑",
    ARROW_DOWN: "↓",
    ARROW_LEFT: "←",
    ARROW_RIGHT: "→",
}


def describe_key(key: str) -> str:
    """Return the text shown for a key in the hint bar."""
    return KEY_TEXT.get(key, key)
