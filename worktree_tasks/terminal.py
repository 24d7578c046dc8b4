"""Raw-mode terminal handling."""

import os
import sys
import termios
from typing import List, Optional, TextIO

from worktree_tasks.constants import CLEAR_SCREEN, HIDE_CURSOR, SHOW_CURSOR


class RawTerminal:
    """Put stdin in raw mode for the lifetime of the context.

    Input is delivered unbuffered and unechoed, carriage returns are not
    translated, and flow control is off so every key reaches the
    application. Output post-processing stays on so ``\\n`` still starts a
    new line. Ctrl-C keeps raising SIGINT.
    """

    def __init__(self, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout):
        self.stdin = stdin
        self.stdout = stdout
        self.fd = stdin.fileno()
        self._saved: Optional[List] = None

    def __enter__(self) -> "RawTerminal":
        self._saved = termios.tcgetattr(self.fd)
        mode = termios.tcgetattr(self.fd)
        mode[0] &= ~(termios.ICRNL | termios.IXON | termios.INLCR | termios.IGNCR)
        mode[3] &= ~(termios.ICANON | termios.ECHO | termios.IEXTEN)
        mode[6][termios.VMIN] = 1
        mode[6][termios.VTIME] = 0
        termios.tcsetattr(self.fd, termios.TCSANOW, mode)
        self.write(HIDE_CURSOR)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        if self._saved is None:
            return
        termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)
        self._saved = None
        self.write(CLEAR_SCREEN + SHOW_CURSOR)

    def read(self, size: int = 1024) -> str:
        """Read whatever is available: one chunk is normally one key."""
        return os.read(self.fd, size).decode("utf-8", errors="replace")

    def write(self, data: str) -> None:
        self.stdout.write(data)
        self.stdout.flush()
