"""Local caches for task metadata and per-list statuses."""
from typing import Dict, List

import yaml
from pydantic import ValidationError

from worktree_tasks.logging_config import get_logger
from worktree_tasks.models.task import Task, TaskStatus
from worktree_tasks.services.clickup_service import ClickupService
from worktree_tasks.services.file_store import StoreFiles

logger = get_logger(__name__)


class CacheService:
    """Reads and writes the YAML task and status caches."""

    def __init__(self, files: StoreFiles, provider: ClickupService):
        self.files = files
        self.provider = provider

    def _load_yaml(self, content: str):
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            logger.warning(f"Cache file is not valid YAML: {e}")
            return None

    def load_tasks(self) -> Dict[str, Task]:
        """Load cached tasks, skipping entries that no longer match the schema."""
        content = self._load_yaml(self.files.tasks.read())
        if not isinstance(content, list):
            return {}

        tasks: Dict[str, Task] = {}
        for entity in content:
            try:
                task = Task.model_validate(entity)
            except ValidationError as e:
                logger.debug(f"Skipping invalid cached task: {e}")
                continue
            tasks[task.id] = task
        logger.debug(f"Loaded {len(tasks)} cached tasks")
        return tasks

    def save_tasks(self, tasks: Dict[str, Task]) -> None:
        data = [task.model_dump() for task in tasks.values()]
        self.files.tasks.write(yaml.safe_dump(data, allow_unicode=True, sort_keys=False))
        logger.debug(f"Saved {len(data)} tasks to cache")

    def load_statuses(self) -> Dict[str, List[TaskStatus]]:
        """Load the list id -> statuses cache, resetting it when it is malformed."""
        content = self._load_yaml(self.files.statuses.read())
        if content is None:
            return {}
        try:
            if not isinstance(content, dict):
                raise ValueError("status cache is not a mapping")
            return {
                str(list_id): [TaskStatus.model_validate(status) for status in statuses]
                for list_id, statuses in content.items()
            }
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Resetting invalid status cache: {e}")
            self.save_statuses({})
            return {}

    def save_statuses(self, statuses: Dict[str, List[TaskStatus]]) -> None:
        data = {
            list_id: [status.model_dump() for status in items]
            for list_id, items in statuses.items()
        }
        self.files.statuses.write(yaml.safe_dump(data, allow_unicode=True, sort_keys=False))

    def load_or_fetch_statuses(self, list_id: str) -> List[TaskStatus]:
        """Statuses for a list, asking ClickUp only on a cache miss. Blocking."""
        local = self.load_statuses()
        if list_id in local:
            return local[list_id]
        statuses = self.provider.get_statuses(list_id)
        local[list_id] = statuses
        self.save_statuses(local)
        return statuses
