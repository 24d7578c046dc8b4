"""Interactive worktree browser: render loop, input loop and page actions."""

import asyncio
import os
import signal
import sys
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO

from rich.console import Console

from worktree_tasks import keys as Keys
from worktree_tasks.config import Config
from worktree_tasks.constants import (
    CLEAR_BELOW,
    CLEAR_LINE_END,
    COPY_STATUS_TIMEOUT,
    FRAME_START,
    HIDE_CURSOR,
    StatusType,
)
from worktree_tasks.exceptions import (
    GitOperationError,
    InvalidTokenError,
    MissingTokenError,
    WorktreeTasksError,
)
from worktree_tasks.logging_config import get_logger
from worktree_tasks.models.task import Task, TaskStatus
from worktree_tasks.models.worktree import branch_from_path
from worktree_tasks.services.cache_service import CacheService
from worktree_tasks.services.clickup_service import ClickupService
from worktree_tasks.services.file_store import StoreFiles
from worktree_tasks.services.git_service import GitService
from worktree_tasks.state.actions import Action, ActionId
from worktree_tasks.state.app_state import ApplicationState
from worktree_tasks.state.pages import Page
from worktree_tasks.terminal import RawTerminal
from worktree_tasks.ui.forms import Checkbox, FormContainer, SecretInput, Select, SelectOption, TextInput
from worktree_tasks.ui.screens import render_header, render_status, render_task_header, render_worktrees
from worktree_tasks.utils.scheduling import RunOnce, Scheduler

logger = get_logger(__name__)

# Errors a collaborator call is expected to raise; anything else is a bug
# and goes to the top-level handler.
EXPECTED_ERRORS = (WorktreeTasksError, OSError)


def _raise_unexpected(results: Sequence[object]) -> List[BaseException]:
    """Split gathered results into expected failures, re-raising anything else."""
    failures = [r for r in results if isinstance(r, BaseException)]
    for failure in failures:
        if not isinstance(failure, EXPECTED_ERRORS):
            raise failure
    return failures


class WorktreeApp:
    """Full-screen worktree browser driven by one asyncio loop."""

    def __init__(
        self,
        config: Config,
        git_service: GitService,
        provider: ClickupService,
        files: StoreFiles,
        scheduler: Optional[Scheduler] = None,
        cache: Optional[CacheService] = None,
        console: Optional[Console] = None,
        output: Optional[TextIO] = None,
    ):
        self.config = config
        self.git_service = git_service
        self.provider = provider
        self.files = files
        self.cache = cache or CacheService(files, provider)
        self.scheduler = scheduler or Scheduler()
        self.run_once = RunOnce(self.scheduler)
        self.state = ApplicationState(clock=self.scheduler.time, main_branch=config.main_branch)
        self.console = console or Console(highlight=False)
        self.output = output or sys.stdout
        self.exit_code: Optional[int] = None
        self.terminal: Optional[RawTerminal] = None
        self._stopped: Optional[asyncio.Event] = None
        self._frame_handle = None

        keys = self.state.keys

        self.token_form = FormContainer(keys)
        self.token_form.add(SecretInput("token", size=30))

        self.add_form = FormContainer(keys)
        self.branch_input = TextInput("branch", size=15)
        self.path_input = TextInput("path", size=15)
        self.commit_input = TextInput("commit", size=15)
        (
            self.add_form.add(self.branch_input, new_line=False)
            .add(Checkbox("create"))
            .add(self.path_input)
            .add(self.commit_input)
        )

        self.status_form = FormContainer(keys)
        self.status_select = Select("status")
        self.status_form.add(self.status_select)

        # Entering the token page always starts from an empty buffer
        self.state.navigator.on_enter(Page.TOKEN, self.token_form.reset)

    # Startup

    def load(self) -> None:
        """Read persisted state and list worktrees. Raises GitOperationError."""
        self.read_token()
        self.state.tasks.update(self.cache.load_tasks())
        self.state.set_paths(self.git_service.list_worktrees())
        self.state.select_branch(self.git_service.current_branch())
        logger.info(f"Loaded {len(self.state.paths)} worktrees, {len(self.state.tasks)} cached tasks")

    def read_token(self) -> None:
        token = self.files.token.read() or os.environ.get(self.config.token_env_var)
        if token:
            self.state.token = token

    # Actions

    def _has_token(self) -> bool:
        return bool(self.state.token)

    def _typing(self) -> bool:
        form = {Page.ADD: self.add_form, Page.TOKEN: self.token_form}.get(self.state.page)
        return form is not None and form.has_focus()

    def _is_main_or_task(self) -> bool:
        branch = self.state.selected_branch()
        return branch == self.config.main_branch or self.state.selected_is_task()

    def page_actions(self) -> Dict[Page, List[Action]]:
        state = self.state

        def no_token() -> bool:
            return not state.token

        def not_task() -> bool:
            return not state.selected_is_task()

        return {
            Page.IDLE: [
                Action(ActionId.ADD, partial(state.to_page, Page.ADD)),
                Action(ActionId.DELETE, self.delete_confirmation),
                Action(ActionId.COPY, self.copy_selected),
                Action(ActionId.OPEN, self.enter_project, shortcut=Keys.ENTER, hidden=True),
                Action(ActionId.PULL_REQUEST, self.open_pull_request, disabled=self._is_main_or_task),
                Action(ActionId.VIEW, self.view_task, disabled=not_task),
                Action(ActionId.UPDATE, partial(state.to_page, Page.UPDATE),
                       hidden=no_token, disabled=no_token),
                Action(ActionId.EDIT, partial(state.to_page, Page.EDIT_TASK),
                       hidden=no_token, disabled=lambda: no_token() or not_task()),
                Action(ActionId.TOKEN, partial(state.to_page, Page.TOKEN),
                       hidden=self._has_token, disabled=self._has_token),
            ],
            Page.UPDATE: [
                Action(ActionId.ALL, self.refetch_all, disabled=no_token),
                Action(ActionId.SELECTED, self.refetch_selected,
                       disabled=lambda: no_token() or not_task()),
                Action(ActionId.BACK, state.previous_page, shortcut=Keys.ESC),
            ],
            Page.TOKEN: [
                Action(ActionId.SET_TOKEN, self.set_token, shortcut=Keys.ENTER,
                       disabled=lambda: not self.token_form.value.get("token")),
                Action(ActionId.BACK, self.leave_token_page, shortcut=Keys.ESC),
            ],
            Page.DELETE_WORKTREE: [
                Action(ActionId.YES, self.delete_selected_worktree),
                Action(ActionId.NO, self.cancel_delete),
            ],
            Page.DELETE_BRANCH: [
                Action(ActionId.YES, self.delete_selected_branch),
                Action(ActionId.NO, self.keep_branch),
            ],
            Page.ADD: [
                Action(ActionId.CREATE, self.create_worktree, shortcut=Keys.ENTER,
                       disabled=lambda: not self.add_form.is_valid() or not self.add_form.value.get("branch")),
                Action(ActionId.BACK, self.leave_add_page, shortcut=Keys.ESC),
            ],
            Page.EDIT_TASK: [
                Action(ActionId.UPDATE, self.update_task_status, shortcut=Keys.ENTER,
                       disabled=lambda: not self.status_form.value.get("status")),
                Action(ActionId.BACK, self.leave_edit_page, shortcut=Keys.ESC),
            ],
        }

    def default_actions(self) -> List[Action]:
        return [Action(ActionId.QUIT, self.quit, hidden=True, disabled=self._typing)]

    def setup_actions(self) -> None:
        self.state.actions.setup(self.state.page, self.page_actions(), self.default_actions())

    # Render loop

    def tick(self) -> str:
        """Advance one frame and return its content."""
        state = self.state
        state.keys.update_key_states()
        state.drain_inbox()
        state.expire_statuses()

        if state.token:
            self.provider.set_token(state.token)

        self.setup_actions()

        if not state.token:
            state.set_status(StatusType.ERROR, f"Missing {self.config.token_env_var}")
        elif state.status and self.config.token_env_var in state.status.message:
            state.clear_status()

        return self.render()

    def render(self) -> str:
        width = self.console.width
        state = self.state
        lines = render_header(state, width)

        if state.page == Page.TOKEN:
            lines.append(self.token_form.update().render())
        elif state.page == Page.ADD:
            self.update_add_form()
            lines.append(self.add_form.render())
        elif state.page == Page.EDIT_TASK and self.prepare_edit_task():
            task = state.tasks[state.selected_branch()]
            lines.extend(render_task_header(task, width))
            lines.append(self.status_form.update().render())
        else:
            lines.extend(render_worktrees(state, width))

        lines.extend(render_status(state))

        with self.console.capture() as capture:
            for line in lines:
                self.console.print(line, soft_wrap=True)
        return capture.get()

    def update_add_form(self) -> None:
        self.add_form.update()
        branch = self.add_form.value.get("branch") or ""
        self.path_input.placeholder = branch
        self.commit_input.placeholder = branch

        existing = {branch_from_path(p) for p in self.state.paths}
        if branch in existing:
            self.branch_input.set_invalid()
            self.state.set_status(StatusType.ERROR, "worktree already exists")
        else:
            self.branch_input.set_valid()
            if self.state.status and self.state.status.message == "worktree already exists":
                self.state.clear_status()

    def prepare_edit_task(self) -> bool:
        """Make sure the status select belongs to the selected task's list."""
        branch = self.state.selected_branch()
        task = self.state.tasks.get(branch) if branch else None
        if task is None:
            self.state.to_page(Page.IDLE)
            return False

        list_id = task.list.id
        if self.status_select.source != list_id:
            self.run_once.run(f"load-statuses:{list_id}", partial(self.load_statuses, list_id))

        if not self.status_form.value.get("status"):
            self.status_form.value["status"] = task.status.id
        return True

    # Input loop

    def handle_input(self, key: str) -> None:
        """Process one stdin chunk."""
        state = self.state
        state.keys.set_key_state(key, True)

        if state.navigator.is_browsing:
            navigation = {
                "j": state.select_next,
                Keys.ARROW_DOWN: state.select_next,
                "k": state.select_previous,
                Keys.ARROW_UP: state.select_previous,
                "K": state.select_first,
                "J": state.select_last,
                Keys.SHIFT_ARROW_UP: state.select_first,
                Keys.SHIFT_ARROW_DOWN: state.select_last,
            }
            if key in navigation:
                state.keys.consume_key(key, navigation[key])
            elif state.status and key == "c":
                state.clear_status()

        state.actions.dispatch(key, state.keys.consume_key)

        # The terminal sends no key-up events
        state.keys.schedule_release(key, self.scheduler.call_later, self.config.key_release_delay)

    # Idle page

    def delete_confirmation(self) -> None:
        branch = self.state.selected_branch()
        if not branch:
            return
        self.state.to_page(Page.DELETE_WORKTREE)
        self.state.set_task_status(branch, StatusType.CONFIRMATION, "are you sure?")

    def copy_selected(self) -> None:
        branch = self.state.selected_branch()
        if branch:
            self.scheduler.spawn(self._copy(branch))

    async def _copy(self, branch: str) -> None:
        try:
            await self.scheduler.run_blocking(self.git_service.copy_to_clipboard, branch)
        except GitOperationError as e:
            self.state.post(partial(self.state.set_task_status, branch, StatusType.ERROR, f"unable to copy {e}"))
            return
        self.state.post(partial(
            self.state.set_task_status, branch, StatusType.SUCCESS, "copied.", COPY_STATUS_TIMEOUT
        ))

    def enter_project(self) -> None:
        """Leave the path of the selected worktree for the shell wrapper to cd into."""
        path = self.state.selected_path()
        if not path:
            return
        try:
            Path(self.config.last_dir_file).write_text(path, encoding="utf-8")
        except OSError as e:
            self.state.set_status(StatusType.ERROR, f"unable to open worktree: {e}")
            return
        self.quit()

    def open_pull_request(self) -> None:
        branch = self.state.selected_branch()
        if branch:
            self.scheduler.spawn(self.run_command(f"gh pr create --web --fill --head {branch}"))

    def view_task(self) -> None:
        branch = self.state.selected_branch()
        if branch:
            self.scheduler.spawn(self.run_command(f"xdg-open {self.provider.get_task_url(branch)}"))

    async def run_command(self, command: str) -> None:
        result = await self.scheduler.run_blocking(self.git_service.run, command)
        if not result.ok:
            message = result.stderr.strip() or f"'{command}' exited with {result.status}"
            self.state.post(partial(self.state.set_status, StatusType.ERROR, message))

    # Task metadata

    def refetch_all(self) -> None:
        self.scheduler.spawn(self.refetch_tasks(list(self.state.task_ids), then=Page.IDLE))

    def refetch_selected(self) -> None:
        branch = self.state.selected_branch()
        if branch:
            self.scheduler.spawn(self.refetch_task(branch, then=Page.IDLE))

    async def refetch_task(self, task_id: str, then: Optional[Page] = None) -> bool:
        """Fetch one task and report the outcome in the global status."""
        state = self.state
        if not state.token:
            state.post(partial(state.to_page, Page.TOKEN))
            return False
        try:
            await self.fetch_task(task_id)
        except EXPECTED_ERRORS as e:
            state.post(partial(self._refetch_one_settled, e, then))
            return False
        state.post(partial(self._refetch_one_settled, None, then))
        return True

    def _refetch_one_settled(self, error: Optional[BaseException], then: Optional[Page]) -> None:
        state = self.state
        if error is None:
            self.save_tasks()
            state.set_status(StatusType.SUCCESS, "successfully updated task", self.config.status_timeout)
        else:
            logger.warning(f"Task refresh failed: {error}")
            state.set_status(StatusType.ERROR, "unable to update task", self.config.status_timeout)

        if isinstance(error, (MissingTokenError, InvalidTokenError)):
            state.to_page(Page.TOKEN)
        elif then is not None:
            state.to_page(then)

    async def refetch_missing(self) -> bool:
        tasks = self.state.tasks
        missing = [t for t in self.state.task_ids if t not in tasks or not tasks[t].name]
        return await self.refetch_tasks(missing)

    async def refetch_tasks(self, task_ids: List[str], then: Optional[Page] = None) -> bool:
        """Fetch several tasks concurrently; report once all have settled.

        Tasks that were fetched are stored and persisted even when others
        failed. Returns True when every fetch succeeded.
        """
        state = self.state
        if not state.token:
            state.post(partial(state.to_page, Page.TOKEN))
            return False
        if not task_ids:
            if then is not None:
                state.post(partial(state.to_page, then))
            return True

        state.post(partial(state.set_status, StatusType.INFO, f"Fetching information from: {', '.join(task_ids)}"))
        results = await asyncio.gather(*(self.fetch_task(t) for t in task_ids), return_exceptions=True)
        failures = _raise_unexpected(results)
        state.post(partial(self._refetch_settled, failures, then))
        return not failures

    async def fetch_task(self, task_id: str) -> Task:
        state = self.state
        state.post(partial(state.set_task_status, task_id, StatusType.INFO, "fetching task information..."))
        try:
            task = await self.scheduler.run_blocking(self.provider.get_task, task_id)
        except EXPECTED_ERRORS as e:
            state.post(partial(state.set_task_status, task_id, StatusType.ERROR, f"clickup error: {e}"))
            raise
        state.post(partial(self._store_task, task_id, task))
        return task

    def _store_task(self, task_id: str, task: Task) -> None:
        self.state.tasks[task_id] = task
        self.state.clear_task_status(task_id)

    def _refetch_settled(self, failures: List[BaseException], then: Optional[Page]) -> None:
        state = self.state
        self.save_tasks()
        if failures:
            logger.warning(f"{len(failures)} task fetches failed")
            state.set_status(StatusType.INFO, "unable to update tasks", self.config.status_timeout)
        else:
            state.set_status(StatusType.SUCCESS, "Information updated", self.config.status_timeout)

        if any(isinstance(f, (MissingTokenError, InvalidTokenError)) for f in failures):
            state.to_page(Page.TOKEN)
        elif then is not None:
            state.to_page(then)

    def save_tasks(self) -> None:
        try:
            self.cache.save_tasks(self.state.tasks)
        except OSError as e:
            self.state.set_status(StatusType.ERROR, f"unable to save tasks: {e}")

    # Token page

    def set_token(self) -> None:
        token = self.token_form.value.get("token")
        if not token:
            return
        self.state.token = token
        self.provider.set_token(token)
        self.state.to_page(Page.IDLE)
        self.token_form.reset()
        try:
            self.files.token.write(token)
        except OSError as e:
            self.state.set_status(StatusType.ERROR, f"unable to save token: {e}")
        self.scheduler.spawn(self.refetch_missing())

    def leave_token_page(self) -> None:
        self.token_form.reset()
        self.state.previous_page()

    # Delete pages

    def cancel_delete(self) -> None:
        self.state.clear_task_status()
        self.state.to_page(Page.IDLE)

    def delete_selected_worktree(self) -> None:
        state = self.state
        branch = state.selected_branch()
        path = state.selected_path()
        if not branch or not path:
            return

        state.set_task_status(branch, StatusType.INFO, "deleting worktree...")
        try:
            self.git_service.remove_worktree(path)
        except GitOperationError as e:
            state.set_task_status(branch, StatusType.ERROR, f"unable to delete worktree: {e}")
            return

        state.to_page(Page.DELETE_BRANCH)
        state.set_task_status(branch, StatusType.CONFIRMATION, "done. delete branch?")

    def delete_selected_branch(self) -> None:
        branch = self.state.selected_branch()
        if branch:
            self.run_once.run(f"delete-branch:{branch}", partial(self._delete_branch, branch))

    async def _delete_branch(self, branch: str) -> None:
        state = self.state
        state.post(partial(state.set_task_status, branch, StatusType.INFO, "deleting branch..."))
        results = await asyncio.gather(
            self.scheduler.run_blocking(self.git_service.delete_local_branch, branch),
            self.scheduler.run_blocking(self.git_service.delete_remote_branch, branch),
            return_exceptions=True,
        )
        failures = _raise_unexpected(results)
        state.post(partial(self._branch_delete_settled, branch, failures))

    def _branch_delete_settled(self, branch: str, failures: List[BaseException]) -> None:
        state = self.state
        if failures:
            state.set_status(StatusType.ERROR, f"unable to delete branch {branch}: {failures[0]}")
        else:
            state.set_status(StatusType.SUCCESS, f"branch [{branch}] successfully deleted",
                             self.config.status_timeout)
        # The worktree itself is gone either way
        state.remove_branch(branch)
        state.clear_task_status(branch)
        state.to_page(Page.IDLE)

    def keep_branch(self) -> None:
        state = self.state
        branch = state.selected_branch()
        if branch:
            state.remove_branch(branch)
            state.set_status(StatusType.SUCCESS, f"worktree [{branch}] successfully deleted",
                             self.config.status_timeout)
        state.clear_task_status()
        state.to_page(Page.IDLE)

    # Add page

    def create_worktree(self) -> None:
        state = self.state
        value = self.add_form.value
        branch = value.get("branch") or ""
        path = value.get("path") or branch
        commit = value.get("commit") or branch
        create = bool(value.get("create"))

        state.set_status(StatusType.INFO, f"adding worktree {branch}...")
        try:
            inside = self.git_service.is_inside_worktree()
            self.git_service.add_worktree(branch, path, commit, create=create, inside_worktree=inside)
        except GitOperationError as e:
            self.files.error.append(f"[worktree-add] {e}")
            state.set_status(StatusType.ERROR, f"[worktree-add]: {e}")
            state.to_page(Page.IDLE)
            return

        state.set_status(StatusType.SUCCESS, f"worktree {branch} added", self.config.status_timeout)
        base = os.path.dirname(state.paths[0]) if state.paths else self.git_service.repo_path
        state.set_paths(state.paths + [os.path.join(base, path)])
        new_branch = branch_from_path(path)
        if state.is_task_branch(new_branch) and state.token:
            self.scheduler.spawn(self.refetch_tasks([new_branch]))
        self.add_form.reset()
        state.to_page(Page.IDLE)

    def leave_add_page(self) -> None:
        self.add_form.reset()
        self.state.to_page(Page.IDLE)

    # Edit task page

    async def load_statuses(self, list_id: str) -> None:
        try:
            statuses = await self.scheduler.run_blocking(self.cache.load_or_fetch_statuses, list_id)
        except EXPECTED_ERRORS as e:
            self.state.post(partial(self._statuses_failed, list_id, e))
            return
        self.state.post(partial(self._statuses_loaded, list_id, statuses))

    def _statuses_loaded(self, list_id: str, statuses: List[TaskStatus]) -> None:
        select = self.status_select
        select.set_options([SelectOption(s.id, s.label) for s in statuses], source=list_id)
        if select.index_of(self.status_form.value.get("status")) < 0:
            self.status_form.value["status"] = select.options[0].id if select.options else ""

    def _statuses_failed(self, list_id: str, error: BaseException) -> None:
        # Remember the list so the failed load is not retried every frame
        self.status_select.set_options([], source=list_id)
        self.state.set_status(StatusType.ERROR, f"unable to load statuses: {error}")

    def update_task_status(self) -> None:
        branch = self.state.selected_branch()
        task = self.state.tasks.get(branch) if branch else None
        option = self.status_select.selected_option()
        if task is None or option is None:
            return
        self.state.set_status(StatusType.INFO, "updating task...")
        self.scheduler.spawn(self._update_task(task, TaskStatus(id=option.id, label=option.label)))

    async def _update_task(self, task: Task, status: TaskStatus) -> None:
        try:
            await self.scheduler.run_blocking(self.provider.update_task, task.id, status.label)
        except EXPECTED_ERRORS as e:
            self.state.post(partial(self.state.set_status, StatusType.ERROR, f"unable to update task: {e}"))
            return
        self.state.post(partial(self._task_updated, task.with_status(status)))

    def _task_updated(self, task: Task) -> None:
        self.state.tasks[task.id] = task
        self.save_tasks()
        self.state.set_status(StatusType.SUCCESS, "task updated!", self.config.status_timeout)

    def leave_edit_page(self) -> None:
        self.status_form.reset()
        self.status_select.set_options([], source=None)
        self.state.to_page(Page.IDLE)

    # Lifecycle

    def quit(self, exit_code: int = 0) -> None:
        if self.exit_code is None:
            self.exit_code = exit_code
        if self._frame_handle is not None:
            self._frame_handle.cancel()
            self._frame_handle = None
        self.state.keys.cancel_all()
        if self._stopped is not None:
            self._stopped.set()

    def handle_unexpected_error(self, error: BaseException) -> None:
        """Last line of defence: record the error and shut down cleanly."""
        logger.error(f"Unhandled error: {error!r}", exc_info=error)
        try:
            self.files.error.append(f"[unhandled-error] {error!r}")
        except OSError as e:
            logger.error(f"Could not write error log: {e}")
        self.quit(1)

    def _loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        error = context.get("exception") or RuntimeError(context.get("message", "unknown error"))
        self.handle_unexpected_error(error)

    def run(self) -> int:
        """Load state and run the interactive session. Returns the exit code."""
        try:
            self.load()
        except GitOperationError as e:
            sys.stderr.write(f"{e.message or e}\n")
            return 1
        return asyncio.run(self._main())

    async def _main(self) -> int:
        loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()
        self.scheduler.on_error = self.handle_unexpected_error
        loop.set_exception_handler(self._loop_exception_handler)

        with RawTerminal(stdout=self.output) as terminal:
            self.terminal = terminal
            loop.add_reader(terminal.fd, self._on_stdin)
            loop.add_signal_handler(signal.SIGINT, self.quit)
            try:
                self._on_frame()
                if self.state.token:
                    self.scheduler.spawn(self.refetch_missing())
                await self._stopped.wait()
            finally:
                loop.remove_reader(terminal.fd)
                loop.remove_signal_handler(signal.SIGINT)
                self.scheduler.cancel_all()
                self.terminal = None

        return self.exit_code or 0

    def _on_stdin(self) -> None:
        data = self.terminal.read()
        if data:
            self.handle_input(data)

    def _on_frame(self) -> None:
        frame = self.tick()
        if self.exit_code is not None or self.terminal is None:
            return
        self.terminal.write(
            FRAME_START + frame.replace("\n", CLEAR_LINE_END + "\n") + CLEAR_BELOW + HIDE_CURSOR
        )
        self._frame_handle = self.scheduler.call_later(self.config.frame_interval, self._on_frame)
