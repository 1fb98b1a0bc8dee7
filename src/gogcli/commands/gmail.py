"""
Define Gmail commands.

- gog gmail send                         - Compose and send a message
- gog gmail messages list                - Search messages
- gog gmail labels list|delete           - Manage labels
- gog gmail thread get <id>              - Show a thread (optionally download attachments)
- gog gmail thread attachments <id>      - List (or download) thread attachments
- gog gmail attachment <msg> <att>       - Download one attachment
- gog gmail drafts delete|send <id>      - Manage drafts
- gog gmail url <threadId>...            - Print web URLs for threads
- gog gmail track setup|status|opens     - Configure open tracking and read opens
"""

from __future__ import annotations

import logging
import sys
from html import escape
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

import typer

from .. import config, tracking
from ..cli_common import (
    handle_errors,
    print_hint,
    print_next_page_hint,
    print_record,
    print_rows,
)
from ..confirm import confirm_destructive, is_interactive
from ..core.errors import CancelledError, ConfigError, GogError, UsageError
from ..dryrun import dry_run_exit
from ..google_calls import execute, execute_delete, is_not_found
from ..mail import (
    DEFAULT_ATTACHMENT_FILENAME,
    MailOptions,
    attachment_filename,
    best_body_for_display,
    build_rfc822,
    cached_regular_file,
    collect_attachments,
    decode_base64url,
    encode_base64url,
    format_bytes,
    header_value,
    sanitize_attachment_filename,
    split_csv,
    strip_html_tags,
)
from ..output_mode import write_rows
from ..paging import fail_empty_exit, fetch_pages
from ..runtime import Runtime, get_runtime

logger = logging.getLogger(__name__)

_HELP = {"help_option_names": ["-h", "--help"]}

gmail_app = typer.Typer(name="gmail", help="Gmail.", no_args_is_help=True, context_settings=_HELP)
messages_app = typer.Typer(name="messages", help="Messages.", no_args_is_help=True, context_settings=_HELP)
labels_app = typer.Typer(name="labels", help="Labels.", no_args_is_help=True, context_settings=_HELP)
thread_app = typer.Typer(name="thread", help="Threads.", no_args_is_help=True, context_settings=_HELP)
drafts_app = typer.Typer(name="drafts", help="Drafts.", no_args_is_help=True, context_settings=_HELP)
track_app = typer.Typer(
    name="track", help="Email open tracking.", no_args_is_help=True, context_settings=_HELP
)

gmail_app.add_typer(messages_app, name="messages")
gmail_app.add_typer(labels_app, name="labels")
gmail_app.add_typer(thread_app, name="thread")
gmail_app.add_typer(drafts_app, name="drafts")
gmail_app.add_typer(track_app, name="track")

USER = "me"


def _gmail(runtime: Runtime) -> Any:
    return runtime.service("gmail", "v1")


# ─────────────────────────────────────────────────────────────────────────────
# Send
# ─────────────────────────────────────────────────────────────────────────────


def _read_body_file(value: str) -> str:
    if value.strip() == "-":
        return sys.stdin.read()
    path = config.expand_path(value)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise UsageError(f"cannot read body file {path}: {e.strerror or e}") from e


def _resolve_send_as(service: Any, account: str, from_addr: str) -> str:
    """Return the From header, verifying a non-primary send-as alias."""
    if not from_addr or from_addr.strip().lower() == account.lower():
        return account
    try:
        alias = execute(service.users().settings().sendAs().get(userId=USER, sendAsEmail=from_addr))
    except Exception as e:
        if is_not_found(e):
            raise UsageError(
                f"invalid --from: {from_addr} is not a send-as alias of {account}"
            ) from e
        raise
    if alias.get("verificationStatus", "accepted") != "accepted" and not alias.get("isPrimary"):
        raise UsageError(f"invalid --from: send-as alias {from_addr} is not verified")
    display = str(alias.get("displayName") or "").strip()
    return f"{display} <{from_addr}>" if display else from_addr


@gmail_app.command("send")
@handle_errors
def gmail_send_cmd(
    ctx: typer.Context,
    to: str = typer.Option("", "--to", help="Recipients (comma-separated)"),
    cc: str = typer.Option("", "--cc", help="CC recipients (comma-separated)"),
    bcc: str = typer.Option("", "--bcc", help="BCC recipients (comma-separated)"),
    subject: str = typer.Option("", "--subject", "-s", help="Subject"),
    body: str = typer.Option("", "--body", help="Plain text body"),
    body_file: str = typer.Option("", "--body-file", help="Read plain body from file ('-' for stdin)"),
    body_html: str = typer.Option("", "--body-html", help="HTML body"),
    from_addr: str = typer.Option("", "--from", help="Send-as alias (must be verified)"),
    reply_to: str = typer.Option("", "--reply-to", help="Reply-To header"),
    in_reply_to: str = typer.Option("", "--in-reply-to", help="Message-ID being replied to"),
    references: str = typer.Option("", "--references", help="References header"),
    thread_id: str = typer.Option("", "--thread-id", help="Thread to add the message to"),
    attach: list[str] = typer.Option([], "--attach", help="File to attach (repeatable)"),
    track: bool = typer.Option(False, "--track", help="Embed an open-tracking pixel"),
) -> None:
    """Send an email."""
    runtime = get_runtime(ctx)

    if body_file.strip():
        if body.strip():
            raise UsageError("use only one of --body or --body-file")
        body = _read_body_file(body_file)

    recipients = split_csv(to)
    cc_list = split_csv(cc)
    bcc_list = split_csv(bcc)
    if not (recipients or cc_list or bcc_list):
        raise UsageError("required: --to (or --cc/--bcc)")
    if not body.strip() and not body_html.strip():
        raise UsageError("required: --body, --body-file, or --body-html")
    if track and len(recipients) + len(cc_list) + len(bcc_list) != 1:
        raise UsageError("--track requires exactly one recipient")

    attachments = [config.expand_path(a) for a in attach]

    dry_run_exit(
        runtime,
        "gmail.send",
        {
            "to": recipients,
            "cc": cc_list,
            "bcc": bcc_list,
            "subject": subject,
            "from": from_addr,
            "reply_to": reply_to,
            "thread_id": thread_id,
            "attachments": [str(a) for a in attachments],
            "track": track,
        },
    )

    account = runtime.require_account()

    tracking_id = ""
    if track:
        cfg = tracking.load_config(account)
        if not cfg.is_configured:
            raise UsageError(
                "tracking is not configured",
                suggested_action="Run: gog gmail track setup --worker-url <url>",
            )
        target = (recipients or cc_list or bcc_list)[0]
        tracking_id = tracking.new_tracking_id()
        pixel = tracking.pixel_html(cfg, tracking_id, target, subject)
        html = body_html or f"<html><body><pre>{escape(body)}</pre></body></html>"
        body_html = tracking.inject_pixel(html, pixel)

    service = _gmail(runtime)
    sender = _resolve_send_as(service, account, from_addr.strip())

    raw = build_rfc822(
        MailOptions(
            from_addr=sender,
            to=recipients,
            cc=cc_list,
            bcc=bcc_list,
            reply_to=reply_to.strip(),
            subject=subject,
            body=body,
            body_html=body_html,
            in_reply_to=in_reply_to.strip(),
            references=references.strip() or in_reply_to.strip(),
            attachments=attachments,
        )
    )
    message: dict[str, Any] = {"raw": encode_base64url(raw)}
    if thread_id.strip():
        message["threadId"] = thread_id.strip()

    sent = execute(service.users().messages().send(userId=USER, body=message))
    result: dict[str, Any] = {
        "messageId": sent.get("id", ""),
        "threadId": sent.get("threadId", ""),
        "tracked": track,
    }
    if track:
        result["trackingId"] = tracking_id
    if runtime.is_json:
        runtime.write_json(result)
        return
    print_record(
        [("message_id", result["messageId"]), ("thread_id", result["threadId"])]
        + ([("tracked", True), ("tracking_id", tracking_id)] if track else [])
    )


# ─────────────────────────────────────────────────────────────────────────────
# Messages
# ─────────────────────────────────────────────────────────────────────────────


def _message_summary(service: Any, message_id: str) -> dict[str, Any]:
    msg = execute(
        service.users()
        .messages()
        .get(
            userId=USER,
            id=message_id,
            format="metadata",
            metadataHeaders=["From", "Subject", "Date"],
        )
    )
    payload = msg.get("payload") or {}
    return {
        "id": msg.get("id", message_id),
        "threadId": msg.get("threadId", ""),
        "date": header_value(payload, "Date"),
        "from": header_value(payload, "From"),
        "subject": header_value(payload, "Subject"),
        "labelIds": msg.get("labelIds") or [],
        "snippet": msg.get("snippet", ""),
    }


@messages_app.command("list")
@handle_errors
def gmail_messages_list_cmd(
    ctx: typer.Context,
    query: str = typer.Option("", "--query", "-q", help="Gmail search query"),
    max_results: int = typer.Option(20, "--max", help="Max results per page", min=1),
    page: str = typer.Option("", "--page", help="Page token"),
    all_pages: bool = typer.Option(False, "--all", help="Fetch all pages"),
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """Search messages."""
    runtime = get_runtime(ctx)
    service = _gmail(runtime)

    def fetch(token: str) -> tuple[list[dict[str, Any]], str | None]:
        params: dict[str, Any] = {"userId": USER, "maxResults": max_results}
        if query.strip():
            params["q"] = query.strip()
        if token:
            params["pageToken"] = token
        resp = execute(service.users().messages().list(**params))
        return resp.get("messages") or [], resp.get("nextPageToken")

    refs, next_token = fetch_pages(page, all_pages, fetch)
    messages = [_message_summary(service, ref["id"]) for ref in refs]

    if runtime.is_json:
        runtime.write_json({"messages": messages, "nextPageToken": next_token})
        fail_empty_exit(fail_empty and not messages)
        return

    if not messages:
        print_hint("No messages")
        fail_empty_exit(fail_empty)
        return

    print_rows(
        runtime,
        ["ID", "THREAD", "DATE", "FROM", "SUBJECT"],
        [[m["id"], m["threadId"], m["date"], m["from"], m["subject"]] for m in messages],
    )
    print_next_page_hint(next_token)


# ─────────────────────────────────────────────────────────────────────────────
# Labels
# ─────────────────────────────────────────────────────────────────────────────


@labels_app.command("list")
@handle_errors
def gmail_labels_list_cmd(
    ctx: typer.Context,
    fail_empty: bool = typer.Option(False, "--fail-empty", help="Exit 3 when no results"),
) -> None:
    """List labels."""
    runtime = get_runtime(ctx)
    service = _gmail(runtime)
    labels = execute(service.users().labels().list(userId=USER)).get("labels") or []

    if runtime.is_json:
        runtime.write_json({"labels": labels})
        fail_empty_exit(fail_empty and not labels)
        return

    if not labels:
        print_hint("No labels")
        fail_empty_exit(fail_empty)
        return

    print_rows(
        runtime,
        ["ID", "NAME", "TYPE"],
        [[lbl.get("id", ""), lbl.get("name", ""), lbl.get("type", "")] for lbl in labels],
    )


def _resolve_label(service: Any, label: str) -> dict[str, Any] | None:
    """Look a label up by ID, falling back to a case-insensitive name match."""
    try:
        return execute(service.users().labels().get(userId=USER, id=label))
    except Exception as e:
        if not is_not_found(e):
            raise
    labels = execute(service.users().labels().list(userId=USER)).get("labels") or []
    wanted = label.lower()
    for candidate in labels:
        if str(candidate.get("name", "")).lower() == wanted:
            return candidate
    return None


@labels_app.command("delete")
@handle_errors
def gmail_labels_delete_cmd(
    ctx: typer.Context,
    label: str = typer.Argument(..., help="Label ID or name"),
) -> None:
    """Delete a user label."""
    runtime = get_runtime(ctx)
    label = label.strip()
    if not label:
        raise UsageError("empty label")

    dry_run_exit(runtime, "gmail.labels.delete", {"label": label})

    service = _gmail(runtime)
    resolved = _resolve_label(service, label)
    if resolved is None:
        logger.info("label %s not found; nothing to delete", label)
        label_id, name, deleted = "", label, False
    else:
        label_id = str(resolved.get("id", ""))
        name = str(resolved.get("name", ""))
        if resolved.get("type") == "system":
            raise GogError(f"cannot delete system label {name!r}")

        confirm_destructive(runtime, f"delete label {name!r}")
        deleted = execute_delete(service.users().labels().delete(userId=USER, id=label_id))

    if runtime.is_json:
        runtime.write_json({"deleted": deleted, "id": label_id, "name": name})
        return
    print_record([("deleted", deleted), ("id", label_id), ("name", name)])


# ─────────────────────────────────────────────────────────────────────────────
# Attachments
# ─────────────────────────────────────────────────────────────────────────────


def _fetch_attachment_bytes(service: Any, message_id: str, attachment_id: str) -> bytes:
    body = execute(
        service.users().messages().attachments().get(userId=USER, messageId=message_id, id=attachment_id)
    )
    return decode_base64url(str(body.get("data") or ""))


def _download(
    service: Any, message_id: str, attachment_id: str, path: Path, expected_size: int
) -> tuple[bool, int]:
    """Download to ``path`` unless a same-sized file is already there."""
    cached, size = cached_regular_file(path, expected_size)
    if cached:
        logger.debug("attachment cached at %s", path)
        return True, size
    data = _fetch_attachment_bytes(service, message_id, attachment_id)
    config.write_private_file(path, data)
    return False, len(data)


BODY_PREVIEW_CHARS = 500


def _thread_download_dir(out_dir: str) -> Path:
    return config.expand_path(out_dir) if out_dir.strip() else Path(".")


def _body_preview(payload: dict[str, Any] | None, full: bool) -> str:
    body, is_html = best_body_for_display(payload)
    if is_html:
        body = strip_html_tags(body)
    if not full and len(body) > BODY_PREVIEW_CHARS:
        body = body[:BODY_PREVIEW_CHARS] + "... [truncated]"
    return body


@thread_app.command("get")
@handle_errors
def gmail_thread_get_cmd(
    ctx: typer.Context,
    thread_id: str = typer.Argument(..., help="Thread ID"),
    full: bool = typer.Option(False, "--full", help="Show full message bodies"),
    download: bool = typer.Option(False, "--download", help="Download attachments"),
    out_dir: str = typer.Option("", "--out-dir", help="Directory for downloads (default: .)"),
) -> None:
    """Get a thread with all messages (optionally download attachments)."""
    runtime = get_runtime(ctx)
    thread_id = thread_id.strip()
    if not thread_id:
        raise UsageError("empty threadId")

    attach_dir = _thread_download_dir(out_dir)
    if download:
        dry_run_exit(
            runtime,
            "gmail.thread.get.download",
            {"thread_id": thread_id, "out_dir": str(attach_dir)},
        )

    service = _gmail(runtime)
    thread = execute(service.users().threads().get(userId=USER, id=thread_id, format="full"))
    messages = [m for m in thread.get("messages") or [] if m]

    downloaded: list[dict[str, Any]] = []
    if download:
        for msg in messages:
            msg_id = str(msg.get("id", ""))
            for info in collect_attachments(msg.get("payload")):
                path = attach_dir / attachment_filename(msg_id, info.attachment_id, info.filename)
                cached, _ = _download(service, msg_id, info.attachment_id, path, info.size)
                downloaded.append(
                    {
                        "messageId": msg_id,
                        "attachmentId": info.attachment_id,
                        "filename": info.filename,
                        "mimeType": info.mime_type,
                        "size": info.size,
                        "path": str(path),
                        "cached": cached,
                    }
                )

    if runtime.is_json:
        runtime.write_json({"thread": thread, "downloaded": downloaded})
        return

    if not messages:
        print_hint("Empty thread")
        return

    typer.echo(f"Thread contains {len(messages)} message(s)")
    typer.echo("")
    for i, msg in enumerate(messages, start=1):
        msg_id = str(msg.get("id", ""))
        payload = msg.get("payload")
        typer.echo(f"=== Message {i}/{len(messages)}: {msg_id} ===")
        for name in ("From", "To", "Subject", "Date"):
            typer.echo(f"{name}: {header_value(payload, name)}")
        typer.echo("")

        body = _body_preview(payload, full)
        if body:
            typer.echo(body)
            typer.echo("")

        attachments = collect_attachments(payload)
        if attachments:
            typer.echo("Attachments:")
            for info in attachments:
                typer.echo(f"  - {info.filename} ({info.size} bytes)")
            typer.echo("")

        saved = [d for d in downloaded if d["messageId"] == msg_id]
        for entry in saved:
            typer.echo(f"{'Cached' if entry['cached'] else 'Saved'}: {entry['path']}")
        if saved:
            typer.echo("")


@thread_app.command("attachments")
@handle_errors
def gmail_thread_attachments_cmd(
    ctx: typer.Context,
    thread_id: str = typer.Argument(..., help="Thread ID"),
    download: bool = typer.Option(False, "--download", help="Download all attachments"),
    out_dir: str = typer.Option("", "--out-dir", help="Directory for downloads (default: .)"),
) -> None:
    """List all attachments in a thread."""
    runtime = get_runtime(ctx)
    thread_id = thread_id.strip()
    if not thread_id:
        raise UsageError("empty threadId")

    attach_dir = _thread_download_dir(out_dir)
    if download:
        dry_run_exit(
            runtime,
            "gmail.thread.attachments.download",
            {"thread_id": thread_id, "out_dir": str(attach_dir)},
        )

    service = _gmail(runtime)
    thread = execute(service.users().threads().get(userId=USER, id=thread_id, format="full"))

    results: list[dict[str, Any]] = []
    for msg in thread.get("messages") or []:
        msg_id = str(msg.get("id", ""))
        for info in collect_attachments(msg.get("payload")):
            entry: dict[str, Any] = {
                "messageId": msg_id,
                "attachmentId": info.attachment_id,
                "filename": info.filename,
                "size": info.size,
                "sizeHuman": format_bytes(info.size),
                "mimeType": info.mime_type,
            }
            if download:
                path = attach_dir / attachment_filename(msg_id, info.attachment_id, info.filename)
                cached, _ = _download(service, msg_id, info.attachment_id, path, info.size)
                entry["path"] = str(path)
                entry["cached"] = cached
            results.append(entry)

    if runtime.is_json:
        runtime.write_json({"threadId": thread_id, "attachments": results})
        return

    if not results:
        print_hint("No attachments found")
        return

    if download:
        print_rows(
            runtime,
            ["STATUS", "FILENAME", "SIZE", "PATH"],
            [
                ["Cached" if a["cached"] else "Saved", a["filename"], a["sizeHuman"], a["path"]]
                for a in results
            ],
        )
        return
    print_rows(
        runtime,
        ["MESSAGE", "ATTACHMENT", "FILENAME", "SIZE", "TYPE"],
        [
            [a["messageId"], a["attachmentId"], a["filename"], a["sizeHuman"], a["mimeType"]]
            for a in results
        ],
    )


def resolve_attachment_dest(message_id: str, attachment_id: str, out: str, name: str) -> Path:
    """Pick the download path for ``gog gmail attachment``.

    No ``--out``: the gmail-attachments dir under the config dir. ``--out``
    naming an existing directory (or ending in a separator): a file inside
    it. Anything else is used as the file path.
    """
    safe = sanitize_attachment_filename(name, DEFAULT_ATTACHMENT_FILENAME)
    if not out.strip():
        return config.gmail_attachments_dir() / attachment_filename(message_id, attachment_id, safe)

    out_path = config.expand_path(out)
    is_dir = out.strip().endswith(("/", "\\")) or out_path.is_dir()
    if not is_dir:
        return out_path
    if not name.strip():
        return out_path / attachment_filename(message_id, attachment_id, None)
    return out_path / safe


@gmail_app.command("attachment")
@handle_errors
def gmail_attachment_cmd(
    ctx: typer.Context,
    message_id: str = typer.Argument(..., help="Message ID"),
    attachment_id: str = typer.Argument(..., help="Attachment ID"),
    out: str = typer.Option("", "--out", help="Output file or directory"),
    name: str = typer.Option("", "--name", help="Filename when --out is empty or a directory"),
) -> None:
    """Download a single attachment."""
    runtime = get_runtime(ctx)
    message_id = message_id.strip()
    attachment_id = attachment_id.strip()
    if not message_id or not attachment_id:
        raise UsageError("messageId/attachmentId required")

    dest = resolve_attachment_dest(message_id, attachment_id, out, name)
    dry_run_exit(
        runtime,
        "gmail.attachment.download",
        {"message_id": message_id, "attachment_id": attachment_id, "path": str(dest)},
    )

    service = _gmail(runtime)
    if not out.strip():
        config.ensure_dir(config.gmail_attachments_dir())

    expected_size = -1
    if dest.is_file():
        # Only look the size up when a cache hit is possible.
        msg = execute(
            service.users().messages().get(userId=USER, id=message_id, format="full", fields="payload")
        )
        for info in collect_attachments(msg.get("payload")):
            if info.attachment_id == attachment_id and info.size > 0:
                expected_size = info.size
                break

    cached, size = _download(service, message_id, attachment_id, dest, expected_size)
    record = {"path": str(dest), "cached": cached, "bytes": size}
    if runtime.is_json:
        runtime.write_json(record)
        return
    print_record(record.items())


# ─────────────────────────────────────────────────────────────────────────────
# Drafts
# ─────────────────────────────────────────────────────────────────────────────


@drafts_app.command("delete")
@handle_errors
def gmail_drafts_delete_cmd(
    ctx: typer.Context,
    draft_id: str = typer.Argument(..., help="Draft ID"),
) -> None:
    """Delete a draft."""
    runtime = get_runtime(ctx)
    draft_id = draft_id.strip()
    if not draft_id:
        raise UsageError("empty draftId")

    confirm_destructive(
        runtime,
        f"delete gmail draft {draft_id}",
        op="gmail.drafts.delete",
        request={"draft_id": draft_id},
    )

    service = _gmail(runtime)
    deleted = execute_delete(service.users().drafts().delete(userId=USER, id=draft_id))
    if runtime.is_json:
        runtime.write_json({"deleted": deleted, "draftId": draft_id})
        return
    print_record([("deleted", deleted), ("draft_id", draft_id)])


@drafts_app.command("send")
@handle_errors
def gmail_drafts_send_cmd(
    ctx: typer.Context,
    draft_id: str = typer.Argument(..., help="Draft ID"),
) -> None:
    """Send an existing draft."""
    runtime = get_runtime(ctx)
    draft_id = draft_id.strip()
    if not draft_id:
        raise UsageError("empty draftId")

    dry_run_exit(runtime, "gmail.drafts.send", {"draft_id": draft_id})

    service = _gmail(runtime)
    msg = execute(service.users().drafts().send(userId=USER, body={"id": draft_id}))
    result = {"messageId": msg.get("id", ""), "threadId": msg.get("threadId", "")}
    if runtime.is_json:
        runtime.write_json(result)
        return
    pairs = [("message_id", result["messageId"])]
    if result["threadId"]:
        pairs.append(("thread_id", result["threadId"]))
    print_record(pairs)


# ─────────────────────────────────────────────────────────────────────────────
# URL
# ─────────────────────────────────────────────────────────────────────────────


def thread_url(account: str, thread_id: str) -> str:
    return f"https://mail.google.com/mail/?authuser={quote_plus(account)}#all/{thread_id}"


@gmail_app.command("url")
@handle_errors
def gmail_url_cmd(
    ctx: typer.Context,
    thread_ids: list[str] = typer.Argument(..., help="Thread IDs"),
) -> None:
    """Print Gmail web URLs for threads."""
    runtime = get_runtime(ctx)
    account = runtime.require_account()
    urls = [{"id": tid, "url": thread_url(account, tid)} for tid in thread_ids]
    if runtime.is_json:
        runtime.write_json({"urls": urls})
        return
    print_record((u["id"], u["url"]) for u in urls)


# ─────────────────────────────────────────────────────────────────────────────
# Tracking
# ─────────────────────────────────────────────────────────────────────────────


@track_app.command("setup")
@handle_errors
def gmail_track_setup_cmd(
    ctx: typer.Context,
    worker_url: str = typer.Option("", "--worker-url", "--domain", help="Tracking worker base URL"),
    worker_name: str = typer.Option("", "--worker-name", help="Worker name"),
    db_name: str = typer.Option("", "--db-name", help="Database name (defaults to worker name)"),
    tracking_key: str = typer.Option("", "--tracking-key", help="Tracking key (generated if omitted)"),
    admin_key: str = typer.Option("", "--admin-key", help="Admin key (generated if omitted)"),
) -> None:
    """Configure open tracking for the account."""
    runtime = get_runtime(ctx)
    account = runtime.require_account()
    cfg = tracking.load_config(account)

    name = tracking.sanitize_worker_name(
        worker_name.strip() or cfg.worker_name or tracking.default_worker_name(account)
    )
    if not name:
        raise UsageError("invalid worker name")
    database = db_name.strip() or cfg.database_name or name

    url = worker_url.strip() or cfg.worker_url
    if not url and not runtime.flags.no_input and not runtime.flags.dry_run and is_interactive():
        try:
            url = typer.prompt("Tracking worker base URL (e.g. https://...workers.dev)", err=True)
        except typer.Abort as e:
            raise CancelledError("cancelled") from e
        url = url.strip()
    if not url:
        raise UsageError("required: --worker-url")

    key = tracking_key.strip() or cfg.tracking_key or tracking.generate_key()
    admin = admin_key.strip() or cfg.admin_key or tracking.generate_admin_key()

    dry_run_exit(
        runtime,
        "gmail.track.setup",
        {
            "account": account,
            "worker_url": url,
            "worker_name": name,
            "database_name": database,
            "tracking_key_set": bool(key),
            "admin_key_set": bool(admin),
        },
    )

    cfg.enabled = True
    cfg.worker_url = url
    cfg.worker_name = name
    cfg.database_name = database
    cfg.tracking_key = key
    cfg.admin_key = admin
    tracking.save_config(account, cfg)

    record = {
        "configured": True,
        "account": account,
        "config_path": str(config.tracking_config_path()),
        "worker_url": url,
        "worker_name": name,
        "database_name": database,
    }
    if runtime.is_json:
        runtime.write_json(record)
        return
    print_record(record.items())
    print_hint(
        "\n".join(
            [
                "",
                "Next steps (manual worker deploy):",
                f"  - wrangler d1 create {database}",
                f"  - set wrangler.toml name={name} + database_id",
                "  - wrangler secret put TRACKING_KEY",
                "  - wrangler secret put ADMIN_KEY",
                "  - wrangler deploy",
            ]
        )
    )


@track_app.command("status")
@handle_errors
def gmail_track_status_cmd(ctx: typer.Context) -> None:
    """Show the open tracking configuration."""
    runtime = get_runtime(ctx)
    account = runtime.require_account()
    cfg = tracking.load_config(account)
    record = {"account": account, **cfg.public_dict()}
    if runtime.is_json:
        runtime.write_json(record)
        return
    print_record(record.items())


@track_app.command("opens")
@handle_errors
def gmail_track_opens_cmd(
    ctx: typer.Context,
    tracking_id: str = typer.Argument("", help="Tracking ID from send --track"),
    to: str = typer.Option("", "--to", help="Filter by recipient email"),
    since: str = typer.Option("", "--since", help="Filter by time (e.g. 24h, 2025-01-01)"),
) -> None:
    """Show recorded opens for one message, or all opens (admin key)."""
    runtime = get_runtime(ctx)
    account = runtime.require_account()
    cfg = tracking.load_config(account)
    if not cfg.is_configured:
        raise ConfigError("tracking not configured", suggested_action="Run: gog gmail track setup")

    tracking_id = tracking_id.strip()
    if tracking_id:
        summary = tracking.query_tracking_id(cfg, tracking_id)
        if runtime.is_json:
            runtime.write_json(summary)
            return
        pairs: list[tuple[str, Any]] = [
            ("tracking_id", summary.get("tracking_id", "")),
            ("recipient", summary.get("recipient", "")),
            ("sent_at", summary.get("sent_at", "")),
            ("opens_total", summary.get("total_opens", 0)),
            ("opens_human", summary.get("human_opens", 0)),
        ]
        first = summary.get("first_human_open")
        if isinstance(first, dict):
            pairs.append(("first_human_open", first.get("at", "")))
            pairs.append(("first_human_open_location", tracking.format_location(first.get("location"))))
        print_record(pairs)
        return

    since_value = tracking.parse_since(since) if since.strip() else ""
    result = tracking.query_opens(cfg, recipient=to.strip(), since=since_value)
    if runtime.is_json:
        runtime.write_json(result)
        return
    opens = result["opens"]
    if not opens:
        print_record([("opens", 0)])
        return
    write_rows(
        [
            o.get("tracking_id", ""),
            o.get("recipient", ""),
            o.get("opened_at", ""),
            bool(o.get("is_bot")),
            o.get("subject_hash", ""),
            tracking.format_location(o.get("location")),
        ]
        for o in opens
    )
