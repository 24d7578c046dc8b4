"""Collaborator services: git, ClickUp, local files and caches."""

from .cache_service import CacheService
from .clickup_service import ClickupService
from .file_store import FileStore, StoreFiles
from .git_service import CommandResult, GitService

__all__ = [
    "CacheService",
    "ClickupService",
    "CommandResult",
    "FileStore",
    "GitService",
    "StoreFiles",
]
