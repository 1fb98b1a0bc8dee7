"""Discovery-based Google service factory for the ServiceFactory port.

Credentials are resolved per account, in order:
1. a stored service account key (domain-wide delegation, impersonating the account);
2. a stored authorized-user token (written by the auth flow).
Nothing here prompts; a missing credential is an AuthRequiredError.
"""

from __future__ import annotations

import logging
from typing import Any

from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account
from googleapiclient.discovery import build

from .. import config
from ..core.errors import AuthRequiredError, ConfigError
from ..ports.google_services import ServiceFactory

logger = logging.getLogger(__name__)

_SCOPE_PREFIX = "https://www.googleapis.com/auth/"

SCOPES: dict[str, list[str]] = {
    "gmail": [_SCOPE_PREFIX + "gmail.modify", _SCOPE_PREFIX + "gmail.settings.basic"],
    "calendar": [_SCOPE_PREFIX + "calendar"],
    "drive": [_SCOPE_PREFIX + "drive"],
    "sheets": [_SCOPE_PREFIX + "spreadsheets"],
    "slides": [_SCOPE_PREFIX + "presentations"],
    "tasks": [_SCOPE_PREFIX + "tasks"],
    "cloudidentity": [_SCOPE_PREFIX + "cloud-identity.groups.readonly"],
}


def scopes_for(api: str) -> list[str]:
    try:
        return SCOPES[api]
    except KeyError:
        raise ConfigError(f"no OAuth scopes known for API {api!r}") from None


class DiscoveryServiceFactory(ServiceFactory):
    """Service factory backed by googleapiclient discovery documents."""

    def credentials(self, api: str, account: str) -> Any:
        scopes = scopes_for(api)

        sa_path = config.service_account_path(account)
        if sa_path.exists():
            logger.debug("using service account credentials for %s (%s)", account, sa_path)
            creds = service_account.Credentials.from_service_account_file(
                str(sa_path), scopes=scopes
            )
            return creds.with_subject(account)

        tok_path = config.token_path(account)
        if tok_path.exists():
            logger.debug("using authorized-user token for %s (%s)", account, tok_path)
            return user_credentials.Credentials.from_authorized_user_file(
                str(tok_path), scopes=scopes
            )

        raise AuthRequiredError(
            f"no credentials stored for {account}",
            suggested_action=f"Run: gog auth service-account set {account} --key <key.json>",
            account=account,
        )

    def build(self, api: str, version: str, account: str) -> Any:
        creds = self.credentials(api, account)
        logger.debug("building %s %s service for %s", api, version, account)
        return build(api, version, credentials=creds, cache_discovery=False)
