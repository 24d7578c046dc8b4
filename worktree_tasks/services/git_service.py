"""Git and shell command execution for worktree-tasks."""

import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Optional

import git

from worktree_tasks.exceptions import GitOperationError
from worktree_tasks.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of an external command."""

    status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.status == 0


def _error_message(e: git.exc.GitCommandError) -> str:
    """Extract the useful part of a GitCommandError."""
    stderr = (e.stderr if hasattr(e, "stderr") and e.stderr else str(e)).strip()
    status = e.status if hasattr(e, "status") else "unknown"
    if stderr:
        return f"exit {status}: {stderr}"
    return f"exit code {status}"


def parse_worktree_list(output: str) -> List[str]:
    """Parse ``git worktree list --porcelain`` into worktree paths.

    Format (blank line between worktrees):
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name
    Bare entries are skipped.
    """
    paths: List[str] = []
    current: dict = {}
    for line in output.split("\n") + [""]:
        line = line.strip()
        if not line:
            if current.get("path") and not current.get("bare"):
                paths.append(current["path"])
            current = {}
            continue
        if line.startswith("worktree "):
            current["path"] = line.split(" ", 1)[1]
        elif line == "bare":
            current["bare"] = True
    return paths


class GitService:
    """Runs git commands against the repository the tool was started in."""

    def __init__(self, repo_path: str, remote_name: str = "origin", clipboard_command: str = "xclip -sel c"):
        self.repo_path = repo_path
        self.remote_name = remote_name
        self.clipboard_command = clipboard_command

    def _git(self) -> git.Git:
        """A git command wrapper bound to the repository path.

        Works for bare repositories and linked worktrees alike.
        """
        return git.Git(self.repo_path)

    def list_worktrees(self) -> List[str]:
        try:
            output = self._git().worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise GitOperationError("worktree list", message=_error_message(e)) from e
        paths = parse_worktree_list(output)
        logger.debug(f"Found {len(paths)} worktrees")
        return paths

    def current_branch(self) -> str:
        """Branch checked out in the repository path, empty when detached or bare."""
        try:
            branch = self._git().rev_parse("--abbrev-ref", "HEAD").strip()
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not determine current branch: {_error_message(e)}")
            return ""
        return "" if branch == "HEAD" else branch

    def is_inside_worktree(self) -> bool:
        try:
            return self._git().rev_parse("--is-inside-work-tree").strip().startswith("true")
        except git.exc.GitCommandError:
            return False

    def add_worktree(
        self,
        branch: str,
        path: Optional[str] = None,
        commit: Optional[str] = None,
        create: bool = False,
        inside_worktree: bool = False,
    ) -> str:
        """Add a worktree for ``branch`` and return the path given to git.

        ``path`` and ``commit`` default to the branch name. When creating a
        new branch from another commit, the commit is taken from the remote.
        """
        path = path or branch
        commit = commit or branch
        target = ("../" if inside_worktree else "") + path

        args = ["add"]
        if create:
            args += ["-b", branch]
        args.append(target)
        if create:
            if commit != branch:
                args.append(f"{self.remote_name}/{commit}")
        else:
            args.append(commit)

        try:
            self._git().worktree(*args)
        except git.exc.GitCommandError as e:
            error_msg = _error_message(e)
            logger.error(f"Failed to add worktree {target}: {error_msg}")
            raise GitOperationError("worktree add", branch, error_msg) from e
        logger.info(f"Added worktree {target}")
        return target

    def remove_worktree(self, path: str, force: bool = False) -> None:
        args = ["remove", path]
        if force:
            args.append("--force")
        try:
            self._git().worktree(*args)
        except git.exc.GitCommandError as e:
            error_msg = _error_message(e)
            logger.error(f"Failed to remove worktree at {path}: {error_msg}")
            raise GitOperationError("worktree remove", path, error_msg) from e
        logger.info(f"Removed worktree at {path}")

    def delete_local_branch(self, branch: str) -> None:
        try:
            self._git().branch("-D", branch)
        except git.exc.GitCommandError as e:
            raise GitOperationError("delete local branch", branch, _error_message(e)) from e
        logger.info(f"Deleted local branch {branch}")

    def delete_remote_branch(self, branch: str) -> None:
        try:
            self._git().push(self.remote_name, f":{branch}")
        except git.exc.GitCommandError as e:
            raise GitOperationError("delete remote branch", branch, _error_message(e)) from e
        logger.info(f"Deleted remote branch {self.remote_name}/{branch}")

    def run(self, command: str) -> CommandResult:
        """Run an arbitrary command string from the repository path."""
        argv = shlex.split(command)
        try:
            status, stdout, stderr = self._git().execute(
                argv, with_extended_output=True, with_exceptions=False
            )
        except git.exc.GitCommandNotFound as e:
            return CommandResult(127, "", str(e))
        logger.debug(f"'{command}' exited with {status}")
        return CommandResult(status, stdout, stderr)

    def copy_to_clipboard(self, text: str) -> None:
        try:
            subprocess.run(
                shlex.split(self.clipboard_command),
                input=text,
                text=True,
                capture_output=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise GitOperationError("copy", message=str(e)) from e
