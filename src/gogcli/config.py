"""
Configuration management.

Everything gog persists lives in one directory (``GOG_CONFIG_DIR`` or
``~/.config/gogcli``):

    config.json              flat key/value user settings
    sa-<b64(email)>.json     service account keys, one per impersonated user
    tokens/<email>.json      authorized-user tokens (written by the auth flow)
    tracking.json            per-account open-tracking configuration
    gmail-attachments/       default attachment download directory
"""

from __future__ import annotations

import base64
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .core.errors import ConfigError, UsageError

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "GOG_CONFIG_DIR"
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "gogcli"

CONFIG_FILENAME = "config.json"
TRACKING_FILENAME = "tracking.json"

# Keys accepted by `gog config set`.
CONFIG_KEYS = {
    "account": "Default account email for API commands",
    "timezone": "Default IANA timezone for time/calendar commands",
    "enable_commands": "Comma-separated allow-list of top-level commands",
    "disable_commands": "Comma-separated deny-list of command paths (dot-separated)",
}


def get_config_dir() -> Path:
    """Get the configuration directory."""
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_DIR


def ensure_dir(path: Path | None = None) -> Path:
    """Create a private (0700) directory, defaulting to the config dir."""
    target = path or get_config_dir()
    target.mkdir(parents=True, exist_ok=True, mode=0o700)
    return target


def expand_path(value: str) -> Path:
    """Expand ``~`` in a user-supplied path."""
    value = value.strip()
    if not value:
        raise UsageError("empty path")
    return Path(value).expanduser()


def config_path() -> Path:
    return get_config_dir() / CONFIG_FILENAME


def load_user_config() -> dict[str, Any]:
    """Load config.json, returning an empty config when missing or malformed."""
    path = config_path()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("ignoring unreadable config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config file %s: expected a JSON object", path)
        return {}
    return data


def write_private_file(path: Path, data: bytes) -> None:
    """Atomically replace ``path`` with ``data``, readable only by the owner.

    The temp file is created 0600, so the content is never visible with
    wider permissions, not even briefly.
    """
    ensure_dir(path.parent)
    fd, tmp = tempfile.mkstemp(prefix=".gog-", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def write_private_json(path: Path, data: dict[str, Any]) -> None:
    write_private_file(path, (json.dumps(data, indent=2, sort_keys=True) + "\n").encode("utf-8"))


def save_user_config(cfg: dict[str, Any]) -> Path:
    """Write config.json with private permissions."""
    path = config_path()
    write_private_json(path, cfg)
    return path


def validate_config_key(key: str) -> str:
    normalized = key.strip().lower().replace("-", "_")
    if normalized not in CONFIG_KEYS:
        raise UsageError(
            f"unknown config key {key!r}",
            suggested_action=f"Valid keys: {', '.join(sorted(CONFIG_KEYS))}",
        )
    return normalized


def get_setting(key: str) -> str:
    """Return a config.json setting as a stripped string ('' when unset)."""
    value = load_user_config().get(key)
    if value is None:
        return ""
    return str(value).strip()


def _encode_email(email: str) -> str:
    raw = email.strip().lower().encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def service_account_path(email: str) -> Path:
    """Path of the stored service account key used to impersonate ``email``."""
    if not email.strip():
        raise UsageError("empty email")
    return get_config_dir() / f"sa-{_encode_email(email)}.json"


def token_path(email: str) -> Path:
    """Path of the authorized-user token for ``email``."""
    if not email.strip():
        raise UsageError("empty email")
    return get_config_dir() / "tokens" / f"{email.strip().lower()}.json"


def tracking_config_path() -> Path:
    return get_config_dir() / TRACKING_FILENAME


def gmail_attachments_dir() -> Path:
    return get_config_dir() / "gmail-attachments"


def read_json_file(path: Path) -> dict[str, Any]:
    """Read a JSON object from ``path``, raising ConfigError when it is not one."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"invalid JSON in {path}: expected an object")
    return data
