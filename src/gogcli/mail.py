"""
Gmail helpers: MIME tree walking, body decoding, attachments and RFC822 building.

Pure functions apart from the cached-file check and attachment reads in
`build_rfc822`; nothing here talks to the Gmail API or writes files.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import os
import re
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from pathlib import Path
from typing import Any

from .core.errors import UsageError

DEFAULT_ATTACHMENT_FILENAME = "attachment.bin"

# HTML stripping patterns for cleaner text output.
_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_html_tags(html: str) -> str:
    """Reduce an HTML body to readable text.

    Script and style blocks are removed with their content, remaining tags
    become spaces and whitespace runs collapse to one space.
    """
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def format_bytes(size: int) -> str:
    """Format a byte count as ``B``, ``KB``, ``MB`` or ``GB`` (1024-based)."""
    kb = 1024
    mb = kb * 1024
    gb = mb * 1024
    if size >= gb:
        return f"{size / gb:.1f} GB"
    if size >= mb:
        return f"{size / mb:.1f} MB"
    if size >= kb:
        return f"{size / kb:.1f} KB"
    return f"{size} B"


def encode_base64url(data: bytes) -> str:
    """Unpadded URL-safe base64, as the Gmail API expects for ``raw``."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def decode_base64url(data: str) -> bytes:
    """Decode URL-safe base64; Gmail returns both padded and unpadded forms."""
    cleaned = data.strip()
    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64url data: {e}") from e


def split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


# ─────────────────────────────────────────────────────────────────────────────
# MIME tree
# ─────────────────────────────────────────────────────────────────────────────


def normalize_mime_type(value: str | None) -> str:
    value = (value or "").strip().lower()
    if ";" in value:
        value = value.split(";", 1)[0].strip()
    return value


def header_value(payload: dict[str, Any] | None, name: str) -> str:
    if not payload:
        return ""
    wanted = name.lower()
    for header in payload.get("headers") or []:
        if str(header.get("name", "")).lower() == wanted:
            return str(header.get("value", ""))
    return ""


def find_part_body(part: dict[str, Any] | None, mime_type: str) -> str:
    """Depth-first search for the first decodable body of ``mime_type``."""
    if not part:
        return ""
    body = part.get("body") or {}
    if normalize_mime_type(part.get("mimeType")) == normalize_mime_type(mime_type) and body.get(
        "data"
    ):
        try:
            return decode_base64url(body["data"]).decode("utf-8", errors="replace")
        except ValueError:
            pass
    for child in part.get("parts") or []:
        found = find_part_body(child, mime_type)
        if found:
            return found
    return ""


def best_body_for_display(payload: dict[str, Any] | None) -> tuple[str, bool]:
    """Return (body, is_html), preferring text/plain over text/html."""
    plain = find_part_body(payload, "text/plain")
    if plain:
        return plain, False
    html = find_part_body(payload, "text/html")
    return html, bool(html)


@dataclass(frozen=True)
class AttachmentInfo:
    filename: str
    size: int
    mime_type: str
    attachment_id: str


def collect_attachments(part: dict[str, Any] | None) -> list[AttachmentInfo]:
    """Collect every part carrying an attachmentId, in tree order."""
    if not part:
        return []
    out: list[AttachmentInfo] = []
    body = part.get("body") or {}
    if body.get("attachmentId"):
        filename = str(part.get("filename") or "").strip() or "attachment"
        out.append(
            AttachmentInfo(
                filename=filename,
                size=int(body.get("size") or 0),
                mime_type=str(part.get("mimeType") or ""),
                attachment_id=str(body["attachmentId"]),
            )
        )
    for child in part.get("parts") or []:
        out.extend(collect_attachments(child))
    return out


# ─────────────────────────────────────────────────────────────────────────────
# Attachment files
# ─────────────────────────────────────────────────────────────────────────────


def sanitize_attachment_filename(name: str | None, fallback: str = DEFAULT_ATTACHMENT_FILENAME) -> str:
    # Windows separators too, so "..\\..\\x" cannot escape the target dir.
    clean = (name or "").strip().replace("\\", "/")
    base = os.path.basename(clean)
    if base in ("", ".", ".."):
        return fallback
    return base


def attachment_filename(message_id: str, attachment_id: str, filename: str | None) -> str:
    """``<messageId>_<first 8 of attachmentId>_<safe filename>``."""
    return f"{message_id}_{attachment_id[:8]}_{sanitize_attachment_filename(filename)}"


def cached_regular_file(path: Path, expected_size: int) -> tuple[bool, int]:
    """Return (cached, size): an existing file of the expected size is reused."""
    if expected_size <= 0 or not path.exists():
        return False, 0
    if path.is_dir():
        raise UsageError(f"output path is a directory: {path}")
    size = path.stat().st_size
    if path.is_file() and size == expected_size:
        return True, size
    return False, 0


# ─────────────────────────────────────────────────────────────────────────────
# RFC822
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class MailOptions:
    from_addr: str
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    reply_to: str = ""
    subject: str = ""
    body: str = ""
    body_html: str = ""
    in_reply_to: str = ""
    references: str = ""
    attachments: list[Path] = field(default_factory=list)


def _check_header(name: str, value: str) -> str:
    if "\r" in value or "\n" in value:
        raise UsageError(f"invalid {name}: header values may not contain newlines")
    return value


def build_rfc822(opts: MailOptions, *, allow_missing_to: bool = False) -> bytes:
    """Build a MIME message ready to be base64url-encoded for the Gmail API.

    Plain and HTML bodies become a multipart/alternative; attachments wrap
    that in multipart/mixed.
    """
    if not opts.from_addr.strip():
        raise UsageError("missing From address")
    if not (opts.to or opts.cc or opts.bcc) and not allow_missing_to:
        raise UsageError("required: --to (or --cc/--bcc)")
    if not opts.body.strip() and not opts.body_html.strip():
        raise UsageError("required: --body, --body-file, or --body-html")

    msg = EmailMessage()
    msg["From"] = _check_header("From", opts.from_addr)
    if opts.to:
        msg["To"] = _check_header("To", ", ".join(opts.to))
    if opts.cc:
        msg["Cc"] = _check_header("Cc", ", ".join(opts.cc))
    if opts.bcc:
        msg["Bcc"] = _check_header("Bcc", ", ".join(opts.bcc))
    if opts.reply_to:
        msg["Reply-To"] = _check_header("Reply-To", opts.reply_to)
    msg["Subject"] = _check_header("Subject", opts.subject)
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid()
    if opts.in_reply_to:
        msg["In-Reply-To"] = _check_header("In-Reply-To", opts.in_reply_to)
    if opts.references:
        msg["References"] = _check_header("References", opts.references)

    if opts.body and opts.body_html:
        msg.set_content(opts.body)
        msg.add_alternative(opts.body_html, subtype="html")
    elif opts.body_html:
        msg.set_content(opts.body_html, subtype="html")
    else:
        msg.set_content(opts.body)

    for path in opts.attachments:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise UsageError(f"cannot read attachment {path}: {e.strerror or e}") from e
        ctype, encoding = mimetypes.guess_type(path.name)
        if ctype is None or encoding is not None:
            ctype = "application/octet-stream"
        maintype, subtype = ctype.split("/", 1)
        msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=path.name)

    return msg.as_bytes()
