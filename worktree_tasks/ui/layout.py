"""Row layout for the full-screen frame."""

from dataclasses import dataclass
from typing import List, Sequence, Union

from rich.text import Text

from worktree_tasks.constants import SYMBOL_RULE


@dataclass
class Column:
    """One cell of a row. ``size`` 0 shares whatever width is left."""

    text: Union[Text, str]
    size: int = 0
    align: str = "start"  # start, end
    hidden: bool = False


def calculate_row_sizes(sizes: Sequence[int], width: int) -> List[int]:
    """Distribute the width left by fixed columns among the flexible ones."""
    result = list(sizes)
    flexible = [i for i, size in enumerate(sizes) if not size]
    if not flexible:
        return result
    rest = max(0, (width - sum(sizes)) // len(flexible))
    for i in flexible:
        result[i] = rest
    return result


def render_row(columns: Sequence[Column], width: int, mode: str = "wrap") -> Text:
    """Lay out ``columns`` on one line of ``width`` cells.

    In ``truncate`` mode overflowing cells are cut with an ellipsis, in
    ``wrap`` mode they are left for the terminal to wrap.
    """
    sizes = calculate_row_sizes([c.size for c in columns], width)
    row = Text()
    for column, size in zip(columns, sizes):
        if column.hidden:
            continue
        text = Text(column.text) if isinstance(column.text, str) else column.text.copy()
        if text.cell_len > size:
            if mode == "truncate":
                text.truncate(size, overflow="ellipsis")
        elif text.cell_len < size:
            pad = size - text.cell_len
            if column.align == "end":
                text.pad_left(pad)
            else:
                text.pad_right(pad)
        row.append_text(text)
    return row


def horizontal_rule(width: int) -> Text:
    return Text(SYMBOL_RULE * width, style="dim")
