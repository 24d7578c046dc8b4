"""Configuration handling for worktree-tasks"""

from dataclasses import dataclass, field, fields
from pathlib import Path

from worktree_tasks.constants import SUCCESS_STATUS_TIMEOUT


def _default_store_dir() -> str:
    return str(Path.home() / ".local" / "share" / "gw-app")


@dataclass
class Config:
    """Configuration for worktree-tasks with validation."""

    # Local persistence
    store_dir: str = field(default_factory=_default_store_dir)
    last_dir_file: str = "/tmp/gw-last-dir"  # Read by the shell wrapper to cd into a worktree

    # ClickUp integration
    token_env_var: str = "CLICKUP_TOKEN"
    clickup_api_url: str = "https://api.clickup.com/api/v2"
    clickup_task_url: str = "https://app.clickup.com/t"
    clickup_view_id: str = "183aev-81593"
    request_timeout: int = 30

    # Render and input loop
    frame_rate: int = 60
    key_release_delay: float = 0.1
    status_timeout: float = SUCCESS_STATUS_TIMEOUT

    # Repository
    main_branch: str = "master"

    # Output
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_frame_rate()
        self._validate_key_release_delay()
        self._validate_status_timeout()
        self._validate_request_timeout()
        self._validate_main_branch()
        self._validate_token_env_var()

    def _validate_frame_rate(self):
        """Validate frame_rate is within a sane range."""
        if not 1 <= self.frame_rate <= 120:
            raise ValueError(f"frame_rate must be between 1 and 120, got {self.frame_rate}")

    def _validate_key_release_delay(self):
        """Validate key_release_delay is positive."""
        if self.key_release_delay <= 0:
            raise ValueError(f"key_release_delay must be positive, got {self.key_release_delay}")

    def _validate_status_timeout(self):
        """Validate status_timeout is positive."""
        if self.status_timeout <= 0:
            raise ValueError(f"status_timeout must be positive, got {self.status_timeout}")

    def _validate_request_timeout(self):
        """Validate request_timeout is positive."""
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

    def _validate_main_branch(self):
        """Validate main_branch is not empty."""
        if not self.main_branch or not self.main_branch.strip():
            raise ValueError("main_branch cannot be empty")
        self.main_branch = self.main_branch.strip()

    def _validate_token_env_var(self):
        """Validate token_env_var is not empty."""
        if not self.token_env_var or not self.token_env_var.strip():
            raise ValueError("token_env_var cannot be empty")

    @property
    def frame_interval(self) -> float:
        """Seconds between two render ticks."""
        return 1.0 / self.frame_rate

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
