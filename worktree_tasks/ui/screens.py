"""Page renderers. Each returns the lines it contributes to the frame."""

from typing import List

from rich.text import Text

from worktree_tasks.constants import APP_TITLE, COLUMNS, SYMBOL_TASK
from worktree_tasks.formatters import format_actions, format_status
from worktree_tasks.models.task import Task
from worktree_tasks.models.worktree import branch_from_path
from worktree_tasks.state.app_state import ApplicationState
from worktree_tasks.state.pages import Page
from worktree_tasks.ui.layout import Column, horizontal_rule, render_row

BRANCH_WIDTH = COLUMNS[0].width


def render_header(state: ApplicationState, width: int) -> List[Text]:
    title = Text.assemble(" ", (APP_TITLE, "bold"))
    if state.page != Page.IDLE:
        title.append(f"/{state.page.value}", style="dim")

    lines = [render_row([Column(title, size=30)], width)]
    # On delete pages the confirmation is shown inline on the selected row
    if not state.navigator.is_deleting:
        lines.append(render_row([Column(Text(" ") + format_actions(state.actions.visible()))], width))
    lines.append(horizontal_rule(width))
    lines.append(Text())
    return lines


def render_worktrees(state: ApplicationState, width: int) -> List[Text]:
    lines: List[Text] = []
    deleting = state.navigator.is_deleting

    for index, path in enumerate(state.paths):
        branch = branch_from_path(path)
        status = state.task_status.get(branch)
        task = state.tasks.get(branch)
        selected = index == state.selected

        if selected:
            branch_text = Text(f"[{branch}]", style="yellow")
        elif deleting:
            branch_text = Text(f" {branch} ", style="dim")
        else:
            branch_text = Text(f" {branch} ")

        details = Text()
        if status:
            details = format_status(status)
            if selected and deleting:
                details.append(" ")
                details.append_text(format_actions(state.actions.visible()))
        elif task:
            details = Text(task.name) if task.name else Text("missing name", style="dim")

        lines.append(render_row(
            [
                Column(branch_text, size=BRANCH_WIDTH),
                Column(details, hidden=deleting and not selected),
            ],
            width,
            mode="truncate",
        ))

        if task and not deleting:
            lines.append(render_row(
                [
                    Column("", size=BRANCH_WIDTH),
                    Column(Text(task.status.label, style="dim")),
                ],
                width,
                mode="truncate",
            ))

    lines.append(horizontal_rule(width))
    return lines


def render_task_header(task: Task, width: int) -> List[Text]:
    return [
        Text(f" {SYMBOL_TASK} {task.name}", style="yellow"),
        Text.assemble(" ", (SYMBOL_TASK, "yellow"), f" {task.id}  ", (task.status.label, "dim")),
        horizontal_rule(width),
    ]


def render_status(state: ApplicationState) -> List[Text]:
    if not state.status:
        return []
    return [Text(), Text(" ") + format_status(state.status), Text()]
