"""
Email open tracking configuration.

Per-account settings live in ``tracking.json`` in the config directory. A
tracked message gets a 1x1 pixel whose URL carries a signed token; the
worker behind ``worker_url`` verifies the signature with the same tracking
key and records the open under the message's tracking ID. Opens are read
back from the worker per tracking ID, or in bulk with the admin key.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import re
import secrets
import time
import urllib.error
import urllib.request
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timedelta, timezone
from html import escape
from typing import Any
from urllib.parse import quote, urlencode

from . import config
from .core.errors import ConfigError, GogError, UsageError
from .timezones import parse_rfc3339

logger = logging.getLogger(__name__)

# Timeout for worker requests, in seconds
REQUEST_TIMEOUT = 10

_WORKER_NAME_RE = re.compile(r"[^a-z0-9-]+")
_DURATION_RE = re.compile(r"(?:\d+[smhdw])+")
_DURATION_PART_RE = re.compile(r"(\d+)([smhdw])")
_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass
class TrackingConfig:
    enabled: bool = False
    worker_url: str = ""
    worker_name: str = ""
    database_name: str = ""
    tracking_key: str = ""
    admin_key: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackingConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.worker_url.strip()) and bool(self.tracking_key)

    def public_dict(self) -> dict[str, Any]:
        """Config without secrets, for status output."""
        return {
            "enabled": self.enabled,
            "worker_url": self.worker_url,
            "worker_name": self.worker_name,
            "database_name": self.database_name,
            "tracking_key_set": bool(self.tracking_key),
            "admin_key_set": bool(self.admin_key),
        }


def _load_all() -> dict[str, Any]:
    path = config.tracking_config_path()
    if not path.exists():
        return {}
    return config.read_json_file(path)


def load_config(account: str) -> TrackingConfig:
    entry = _load_all().get(account.strip().lower())
    if not isinstance(entry, dict):
        return TrackingConfig()
    return TrackingConfig.from_dict(entry)


def save_config(account: str, cfg: TrackingConfig) -> None:
    data = _load_all()
    data[account.strip().lower()] = asdict(cfg)
    config.write_private_json(config.tracking_config_path(), data)


def sanitize_worker_name(name: str) -> str:
    """Cloudflare worker names: lowercase alphanumerics and dashes, max 63 chars."""
    cleaned = _WORKER_NAME_RE.sub("-", name.strip().lower()).strip("-")
    return cleaned[:63].rstrip("-")


def default_worker_name(account: str) -> str:
    local = account.split("@", 1)[0]
    return sanitize_worker_name(f"gog-email-tracker-{local}")


def generate_key() -> str:
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


def generate_admin_key() -> str:
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("ascii").rstrip("=")


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def new_tracking_id() -> str:
    return secrets.token_urlsafe(12)


def pixel_token(
    tracking_key: str, tracking_id: str, recipient: str, subject: str, sent_at: int | None = None
) -> str:
    """``<payload>.<signature>``, both unpadded base64url."""
    payload = {
        "id": tracking_id,
        "r": recipient,
        "s": hashlib.sha256(subject.encode("utf-8")).hexdigest()[:16],
        "t": int(sent_at if sent_at is not None else time.time()),
    }
    body = _b64url(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    sig = hmac.new(tracking_key.encode("utf-8"), body.encode("ascii"), hashlib.sha256).digest()
    return f"{body}.{_b64url(sig)}"


def pixel_html(cfg: TrackingConfig, tracking_id: str, recipient: str, subject: str) -> str:
    token = pixel_token(cfg.tracking_key, tracking_id, recipient, subject)
    url = f"{_base_url(cfg)}/p/{token}.gif"
    return f'<img src="{escape(url)}" width="1" height="1" alt="" style="display:none">'


def inject_pixel(html_body: str, pixel: str) -> str:
    """Place the pixel just before ``</body>``, or append it."""
    idx = html_body.lower().rfind("</body>")
    if idx == -1:
        return html_body + pixel
    return html_body[:idx] + pixel + html_body[idx:]


# ─────────────────────────────────────────────────────────────────────────────
# Worker queries
# ─────────────────────────────────────────────────────────────────────────────


def _base_url(cfg: TrackingConfig) -> str:
    return cfg.worker_url.strip().rstrip("/")


def _get(url: str, headers: dict[str, str] | None = None) -> tuple[int, bytes]:
    """GET ``url``; HTTP error statuses are returned, not raised."""
    request = urllib.request.Request(url, headers=headers or {})
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(request, timeout=REQUEST_TIMEOUT) as response:
            return response.status, response.read()
    except urllib.error.HTTPError as e:
        return e.code, e.read()
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        reason = getattr(e, "reason", e)
        raise GogError(f"query tracker: {reason}") from e


def _decode(body: bytes) -> Any:
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise GogError(f"decode response: {e}") from e


def _tracker_failure(status: int, body: bytes) -> GogError:
    return GogError(f"tracker returned {status}: {body.decode('utf-8', errors='replace').strip()}")


def query_tracking_id(cfg: TrackingConfig, tracking_id: str) -> dict[str, Any]:
    """Open summary for one tracked message (``GET /q/<id>``)."""
    status, body = _get(f"{_base_url(cfg)}/q/{quote(tracking_id, safe='')}")
    if status != 200:
        raise _tracker_failure(status, body)
    data = _decode(body)
    if not isinstance(data, dict):
        raise GogError("decode response: expected a JSON object")
    return data


def query_opens(cfg: TrackingConfig, recipient: str = "", since: str = "") -> dict[str, Any]:
    """Every recorded open, filtered by recipient and time (``GET /opens``).

    Requires the admin key, sent as a bearer token.
    """
    if not cfg.admin_key.strip():
        raise ConfigError(
            "tracking admin key not configured",
            suggested_action="Run: gog gmail track setup",
        )
    params = {k: v for k, v in (("recipient", recipient), ("since", since)) if v}
    url = f"{_base_url(cfg)}/opens"
    if params:
        url += "?" + urlencode(params)
    status, body = _get(url, {"Authorization": f"Bearer {cfg.admin_key.strip()}"})
    if status == 401:
        raise GogError("unauthorized: admin key may be incorrect")
    if status != 200:
        raise _tracker_failure(status, body)
    data = _decode(body)
    opens = data.get("opens") if isinstance(data, dict) else None
    return {"opens": opens if isinstance(opens, list) else []}


def format_location(location: Any) -> str:
    if isinstance(location, dict) and location.get("city"):
        return f"{location['city']}, {location.get('region', '')}"
    return "unknown"


def parse_since(value: str, now: datetime | None = None) -> str:
    """Normalize ``--since`` to an RFC3339 UTC timestamp.

    Accepts a duration back from ``now`` (``24h``, ``1d12h``, ``30m``), a
    local date (``YYYY-MM-DD``, midnight) or an RFC3339 timestamp.
    """
    text = value.strip()
    if not text:
        raise UsageError("empty --since")
    now = now or datetime.now(timezone.utc)

    parsed: datetime | None = None
    if _DURATION_RE.fullmatch(text):
        seconds = sum(int(n) * _DURATION_UNITS[u] for n, u in _DURATION_PART_RE.findall(text))
        parsed = now - timedelta(seconds=seconds)
    elif _DATE_RE.fullmatch(text):
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d").astimezone()
        except ValueError:
            parsed = None
    else:
        try:
            parsed = parse_rfc3339(text)
        except ValueError:
            parsed = None

    if parsed is None:
        raise UsageError(f"invalid --since {value!r} (use duration like 24h, date YYYY-MM-DD, or RFC3339)")
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
