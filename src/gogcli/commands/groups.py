"""
Define Google Groups commands (Cloud Identity API).

- gog groups list              - Groups the account belongs to
- gog groups members <email>   - Members of a group
"""

from __future__ import annotations

from typing import Any

import typer

from ..cli_common import handle_errors, print_hint, print_next_page_hint, print_rows
from ..core.errors import UsageError
from ..google_calls import execute
from ..paging import fail_empty_exit, fetch_pages
from ..runtime import get_runtime

groups_app = typer.Typer(
    name="groups",
    help="Google Groups.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

ROLE_OWNER = "OWNER"
ROLE_MANAGER = "MANAGER"
ROLE_MEMBER = "MEMBER"


def member_role(roles: list[dict[str, Any]] | None) -> str:
    """Highest membership role: OWNER > MANAGER > MEMBER."""
    names = {str(r.get("name", "")) for r in roles or []}
    for role in (ROLE_OWNER, ROLE_MANAGER):
        if role in names:
            return role
    return ROLE_MEMBER


def relation_type(value: str | None) -> str:
    return (value or "").strip().lower()


@groups_app.command("list")
@handle_errors
def groups_list_cmd(
    ctx: typer.Context,
    max_results: int = typer.Option(100, "--max", help="Max results per page", min=1),
    page: str = typer.Option("", "--page", help="Page token"),
    all_pages: bool = typer.Option(False, "--all", help="Fetch all pages"),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """List groups the account is a member of."""
    runtime = get_runtime(ctx)
    account = runtime.require_account()
    service = runtime.service("cloudidentity", "v1")

    def fetch(token: str) -> tuple[list[dict[str, Any]], str | None]:
        params: dict[str, Any] = {
            "parent": "groups/-",
            "query": f"member_key_id == '{account}'",
            "pageSize": max_results,
        }
        if token:
            params["pageToken"] = token
        resp = execute(service.groups().memberships().searchTransitiveGroups(**params))
        return resp.get("memberships") or [], resp.get("nextPageToken")

    memberships, next_token = fetch_pages(page, all_pages, fetch)
    groups = [
        {
            "groupName": (m.get("groupKey") or {}).get("id", ""),
            "displayName": m.get("displayName", ""),
            "role": relation_type(m.get("relationType")),
        }
        for m in memberships
    ]

    if runtime.is_json:
        runtime.write_json({"groups": groups, "nextPageToken": next_token})
        fail_empty_exit(fail_empty and not groups)
        return

    if not groups:
        print_hint("No groups found")
        fail_empty_exit(fail_empty)
        return

    print_rows(
        runtime,
        ["GROUP", "NAME", "RELATION"],
        [[g["groupName"], g["displayName"], g["role"]] for g in groups],
    )
    print_next_page_hint(next_token)


@groups_app.command("members")
@handle_errors
def groups_members_cmd(
    ctx: typer.Context,
    group_email: str = typer.Argument(..., help="Group email"),
    max_results: int = typer.Option(100, "--max", help="Max results per page", min=1),
    page: str = typer.Option("", "--page", help="Page token"),
    all_pages: bool = typer.Option(False, "--all", help="Fetch all pages"),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """List members of a group."""
    runtime = get_runtime(ctx)
    group_email = group_email.strip()
    if not group_email:
        raise UsageError("group email required")

    service = runtime.service("cloudidentity", "v1")
    group_name = execute(service.groups().lookup(groupKey_id=group_email)).get("name", "")

    def fetch(token: str) -> tuple[list[dict[str, Any]], str | None]:
        params: dict[str, Any] = {"parent": group_name, "pageSize": max_results}
        if token:
            params["pageToken"] = token
        resp = execute(service.groups().memberships().list(**params))
        return resp.get("memberships") or [], resp.get("nextPageToken")

    memberships, next_token = fetch_pages(page, all_pages, fetch)
    members = [
        {
            "email": m["preferredMemberKey"].get("id", ""),
            "role": member_role(m.get("roles")),
            "type": m.get("type", ""),
        }
        for m in memberships
        if m.get("preferredMemberKey")
    ]

    if runtime.is_json:
        runtime.write_json({"members": members, "nextPageToken": next_token})
        fail_empty_exit(fail_empty and not members)
        return

    if not members:
        print_hint(f"No members in group {group_email}")
        fail_empty_exit(fail_empty)
        return

    print_rows(runtime, ["EMAIL", "ROLE", "TYPE"], [[m["email"], m["role"], m["type"]] for m in members])
    print_next_page_hint(next_token)
