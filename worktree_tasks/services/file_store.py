"""Named text slots persisted under the store directory."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from worktree_tasks.logging_config import get_logger

logger = get_logger(__name__)


class FileStore:
    """One file holding one piece of state. Created empty on first use."""

    def __init__(self, filename: str, store_dir: str):
        self.path = Path(store_dir) / filename
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch()
            logger.debug(f"Created store slot {self.path}")

    def read(self) -> str:
        content = self.path.read_text(encoding="utf-8")
        if content.endswith("\n"):
            content = content[:-1]
        return content

    def write(self, content: str) -> None:
        self.path.write_text(content, encoding="utf-8")

    def append(self, content: object) -> None:
        """Append a timestamped line."""
        timestamp = datetime.now().isoformat(timespec="seconds")
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{timestamp}] {content}\n")


@dataclass
class StoreFiles:
    """All the slots the application persists."""

    token: FileStore
    tasks: FileStore
    statuses: FileStore
    error: FileStore

    @classmethod
    def open(cls, store_dir: str) -> "StoreFiles":
        return cls(
            token=FileStore("token", store_dir),
            tasks=FileStore("tasks.yaml", store_dir),
            statuses=FileStore("statuses.yaml", store_dir),
            error=FileStore("error-log", store_dir),
        )
