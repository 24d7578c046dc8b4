"""Task models shared by the ClickUp client and the local task cache."""

from pydantic import BaseModel


class TaskStatus(BaseModel):
    """A workflow status a task can be moved to."""

    id: str
    label: str


class TaskList(BaseModel):
    """The list a task belongs to; statuses are defined per list."""

    id: str
    name: str


class Task(BaseModel):
    """Task metadata shown next to a worktree."""

    id: str
    name: str
    status: TaskStatus
    list: TaskList

    def with_status(self, status: TaskStatus) -> "Task":
        return self.model_copy(update={"status": status})
