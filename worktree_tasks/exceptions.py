"""Custom exceptions for worktree-tasks"""

from typing import Optional


class WorktreeTasksError(Exception):
    """Base exception for all worktree-tasks errors."""
    pass


class GitOperationError(WorktreeTasksError):
    """Exception raised for errors in Git or shell operations."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class TaskProviderError(WorktreeTasksError):
    """Exception raised for errors talking to the task tracking service."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"ClickUp operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class MissingTokenError(TaskProviderError):
    """Exception raised when a request is attempted without a token."""

    def __init__(self, operation: str = "request"):
        super().__init__(operation, "Missing token")


class InvalidTokenError(TaskProviderError):
    """Exception raised when the service rejects the token."""

    def __init__(self, operation: str = "request"):
        super().__init__(operation, "Invalid token")


class InvalidResponseError(TaskProviderError):
    """Exception raised when a response does not match the expected schema."""

    def __init__(self, operation: str, payload: object = None):
        self.payload = payload
        super().__init__(operation, "invalid response")
