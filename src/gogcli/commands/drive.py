"""
Define Google Drive commands.

- gog drive ls                - List files in a folder
- gog drive delete <fileId>   - Trash (or permanently delete) a file
"""

from __future__ import annotations

from typing import Any

import typer

from ..cli_common import handle_errors, print_hint, print_next_page_hint, print_record, print_rows
from ..confirm import confirm_destructive
from ..core.errors import UsageError
from ..google_calls import execute, execute_delete, is_not_found
from ..mail import format_bytes
from ..paging import fail_empty_exit, fetch_pages
from ..runtime import get_runtime

drive_app = typer.Typer(
    name="drive",
    help="Google Drive.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
_LIST_FIELDS = "nextPageToken, files(id, name, mimeType, size, modifiedTime)"


def build_list_query(parent: str, query: str) -> str:
    """Drive search query for the direct, untrashed children of ``parent``."""
    escaped = parent.replace("\\", "\\\\").replace("'", "\\'")
    parts = [f"'{escaped}' in parents", "trashed = false"]
    if query.strip():
        parts.append(f"({query.strip()})")
    return " and ".join(parts)


def _size(item: dict[str, Any]) -> str:
    if item.get("mimeType") == FOLDER_MIME_TYPE:
        return "-"
    raw = item.get("size")
    return format_bytes(int(raw)) if raw not in (None, "") else "-"


@drive_app.command("ls")
@handle_errors
def drive_ls_cmd(
    ctx: typer.Context,
    parent: str = typer.Option("root", "--parent", help="Folder ID"),
    query: str = typer.Option("", "--query", "-q", help="Additional Drive query"),
    max_results: int = typer.Option(20, "--max", help="Max results per page", min=1),
    page: str = typer.Option("", "--page", help="Page token"),
    all_pages: bool = typer.Option(False, "--all", help="Fetch all pages"),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """List files in a folder."""
    runtime = get_runtime(ctx)
    q = build_list_query(parent.strip() or "root", query)
    service = runtime.service("drive", "v3")

    def fetch(token: str) -> tuple[list[dict[str, Any]], str | None]:
        params: dict[str, Any] = {
            "q": q,
            "pageSize": max_results,
            "fields": _LIST_FIELDS,
            "orderBy": "folder,name",
            "supportsAllDrives": True,
            "includeItemsFromAllDrives": True,
        }
        if token:
            params["pageToken"] = token
        resp = execute(service.files().list(**params))
        return resp.get("files") or [], resp.get("nextPageToken")

    files, next_token = fetch_pages(page, all_pages, fetch)

    if runtime.is_json:
        runtime.write_json({"files": files, "nextPageToken": next_token})
        fail_empty_exit(fail_empty and not files)
        return

    if not files:
        print_hint("No files")
        fail_empty_exit(fail_empty)
        return

    print_rows(
        runtime,
        ["ID", "NAME", "SIZE", "MODIFIED"],
        [[f.get("id", ""), f.get("name", ""), _size(f), f.get("modifiedTime", "")] for f in files],
    )
    print_next_page_hint(next_token)


@drive_app.command("delete")
@handle_errors
def drive_delete_cmd(
    ctx: typer.Context,
    file_id: str = typer.Argument(..., help="File ID"),
    permanent: bool = typer.Option(False, "--permanent", help="Delete permanently instead of trashing"),
) -> None:
    """Move a file to the trash, or delete it permanently."""
    runtime = get_runtime(ctx)
    file_id = file_id.strip()
    if not file_id:
        raise UsageError("empty fileId")

    action = "permanently delete" if permanent else "trash"
    confirm_destructive(
        runtime,
        f"{action} drive file {file_id}",
        op="drive.delete",
        request={"file_id": file_id, "permanent": permanent},
    )

    service = runtime.service("drive", "v3")
    if permanent:
        deleted = execute_delete(service.files().delete(fileId=file_id, supportsAllDrives=True))
    else:
        try:
            execute(
                service.files().update(
                    fileId=file_id, body={"trashed": True}, supportsAllDrives=True
                )
            )
            deleted = True
        except Exception as e:
            if not is_not_found(e):
                raise
            deleted = False

    if runtime.is_json:
        runtime.write_json({"deleted": deleted, "trashed": deleted and not permanent, "id": file_id})
        return
    print_record([("deleted", deleted), ("trashed", deleted and not permanent), ("id", file_id)])
