"""
Define Google Tasks commands.

- gog tasks lists                  - List task lists
- gog tasks list <tasklistId>      - List tasks
- gog tasks add <tasklistId>       - Add a task
- gog tasks delete <tasklistId> <taskId>
"""

from __future__ import annotations

from typing import Any

import typer

from ..cli_common import handle_errors, print_hint, print_next_page_hint, print_record, print_rows
from ..confirm import confirm_destructive
from ..core.errors import UsageError
from ..dryrun import dry_run_exit
from ..google_calls import execute, execute_delete
from ..paging import fail_empty_exit, fetch_pages
from ..runtime import Runtime, get_runtime

tasks_app = typer.Typer(
    name="tasks",
    help="Google Tasks.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _tasks(runtime: Runtime) -> Any:
    return runtime.service("tasks", "v1")


def normalize_due(value: str) -> str:
    """Tasks wants RFC3339; a bare date becomes midnight UTC."""
    value = value.strip()
    if len(value) == 10 and value[4] == "-" and value[7] == "-":
        return f"{value}T00:00:00.000Z"
    return value


@tasks_app.command("lists")
@handle_errors
def tasks_lists_cmd(
    ctx: typer.Context,
    max_results: int = typer.Option(100, "--max", help="Max results per page", min=1, max=1000),
    page: str = typer.Option("", "--page", help="Page token"),
    all_pages: bool = typer.Option(False, "--all", help="Fetch all pages"),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """List task lists."""
    runtime = get_runtime(ctx)
    service = _tasks(runtime)

    def fetch(token: str) -> tuple[list[dict[str, Any]], str | None]:
        params: dict[str, Any] = {"maxResults": max_results}
        if token:
            params["pageToken"] = token
        resp = execute(service.tasklists().list(**params))
        return resp.get("items") or [], resp.get("nextPageToken")

    items, next_token = fetch_pages(page, all_pages, fetch)

    if runtime.is_json:
        runtime.write_json({"tasklists": items, "nextPageToken": next_token})
        fail_empty_exit(fail_empty and not items)
        return

    if not items:
        print_hint("No task lists")
        fail_empty_exit(fail_empty)
        return

    print_rows(
        runtime,
        ["ID", "TITLE", "UPDATED"],
        [[t.get("id", ""), t.get("title", ""), t.get("updated", "")] for t in items],
    )
    print_next_page_hint(next_token)


@tasks_app.command("list")
@handle_errors
def tasks_list_cmd(
    ctx: typer.Context,
    tasklist_id: str = typer.Argument(..., help="Task list ID"),
    show_completed: bool = typer.Option(True, "--show-completed/--hide-completed", help="Include completed tasks"),
    max_results: int = typer.Option(100, "--max", help="Max results per page", min=1, max=100),
    page: str = typer.Option("", "--page", help="Page token"),
    all_pages: bool = typer.Option(False, "--all", help="Fetch all pages"),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """List tasks in a task list."""
    runtime = get_runtime(ctx)
    tasklist_id = tasklist_id.strip()
    if not tasklist_id:
        raise UsageError("empty tasklistId")
    service = _tasks(runtime)

    def fetch(token: str) -> tuple[list[dict[str, Any]], str | None]:
        params: dict[str, Any] = {
            "tasklist": tasklist_id,
            "maxResults": max_results,
            "showCompleted": show_completed,
            "showHidden": show_completed,
        }
        if token:
            params["pageToken"] = token
        resp = execute(service.tasks().list(**params))
        return resp.get("items") or [], resp.get("nextPageToken")

    items, next_token = fetch_pages(page, all_pages, fetch)

    if runtime.is_json:
        runtime.write_json({"tasks": items, "nextPageToken": next_token})
        fail_empty_exit(fail_empty and not items)
        return

    if not items:
        print_hint("No tasks")
        fail_empty_exit(fail_empty)
        return

    print_rows(
        runtime,
        ["ID", "TITLE", "STATUS", "DUE"],
        [[t.get("id", ""), t.get("title", ""), t.get("status", ""), t.get("due", "")] for t in items],
    )
    print_next_page_hint(next_token)


@tasks_app.command("add")
@handle_errors
def tasks_add_cmd(
    ctx: typer.Context,
    tasklist_id: str = typer.Argument(..., help="Task list ID"),
    title: str = typer.Option(..., "--title", help="Task title"),
    notes: str = typer.Option("", "--notes", help="Notes"),
    due: str = typer.Option("", "--due", help="Due date (YYYY-MM-DD or RFC3339)"),
    parent: str = typer.Option("", "--parent", help="Parent task ID"),
) -> None:
    """Add a task."""
    runtime = get_runtime(ctx)
    tasklist_id = tasklist_id.strip()
    if not tasklist_id:
        raise UsageError("empty tasklistId")
    if not title.strip():
        raise UsageError("empty title")

    task: dict[str, Any] = {"title": title.strip()}
    if notes:
        task["notes"] = notes
    if due.strip():
        task["due"] = normalize_due(due)

    dry_run_exit(
        runtime,
        "tasks.add",
        {"tasklist_id": tasklist_id, "parent": parent.strip(), "task": task},
    )

    service = _tasks(runtime)
    params: dict[str, Any] = {"tasklist": tasklist_id, "body": task}
    if parent.strip():
        params["parent"] = parent.strip()
    created = execute(service.tasks().insert(**params))

    if runtime.is_json:
        runtime.write_json({"task": created})
        return
    print_record(
        [
            ("id", created.get("id", "")),
            ("title", created.get("title", "")),
            ("status", created.get("status", "")),
            ("due", created.get("due", "")),
        ]
    )


@tasks_app.command("delete")
@handle_errors
def tasks_delete_cmd(
    ctx: typer.Context,
    tasklist_id: str = typer.Argument(..., help="Task list ID"),
    task_id: str = typer.Argument(..., help="Task ID"),
) -> None:
    """Delete a task."""
    runtime = get_runtime(ctx)
    tasklist_id = tasklist_id.strip()
    task_id = task_id.strip()
    if not tasklist_id or not task_id:
        raise UsageError("tasklistId/taskId required")

    confirm_destructive(
        runtime,
        f"delete task {task_id}",
        op="tasks.delete",
        request={"tasklist_id": tasklist_id, "task_id": task_id},
    )

    service = _tasks(runtime)
    deleted = execute_delete(service.tasks().delete(tasklist=tasklist_id, task=task_id))

    if runtime.is_json:
        runtime.write_json({"deleted": deleted, "tasklistId": tasklist_id, "taskId": task_id})
        return
    print_record([("deleted", deleted), ("tasklist_id", tasklist_id), ("task_id", task_id)])
