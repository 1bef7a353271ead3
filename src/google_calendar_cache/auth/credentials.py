"""
Stored Google credentials and their conversion to API-ready credentials.

A CredentialPayload is one connected Google account. Its id is the tenant
boundary of the availability cache.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from aiogoogle import Aiogoogle
from aiogoogle.auth.creds import ClientCreds, UserCreds
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from ..constants import SCOPES
from ..exceptions.auth import InvalidCredentialsError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass
class CredentialPayload:
    """
    A stored Google OAuth credential.
    Args:
        id: Credential identifier; cache entries are scoped to it.
        key: Token data with access_token, refresh_token and expiry_date (ms since epoch).
        user_id: Owner of the credential.
        invalid: Set once Google rejects the refresh token.
    """
    id: int
    key: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[int] = None
    invalid: bool = False


def _expiry_from_millis(expiry_date: Optional[int]) -> Optional[datetime]:
    if not expiry_date:
        return None
    # google-auth compares expiry against naive UTC
    return datetime.fromtimestamp(expiry_date / 1000, tz=timezone.utc).replace(tzinfo=None)


def google_credentials_from_payload(
        payload: CredentialPayload,
        app_keys: Dict[str, str],
        on_refresh: Optional[Callable[[CredentialPayload], None]] = None
) -> Credentials:
    """
    Build google-auth credentials for a stored payload, refreshing them when expired.

    Args:
        payload: The stored credential.
        app_keys: OAuth client with client_id and client_secret.
        on_refresh: Called with the updated payload after a refresh so it can be persisted.

    Returns:
        Valid Credentials.

    Raises:
        InvalidCredentialsError: If the refresh token was revoked (invalid_grant).
    """
    key = payload.key
    creds = Credentials(
        token=key.get("access_token"),
        refresh_token=key.get("refresh_token"),
        token_uri=GOOGLE_TOKEN_URI,
        client_id=app_keys["client_id"],
        client_secret=app_keys["client_secret"],
        scopes=SCOPES,
        expiry=_expiry_from_millis(key.get("expiry_date")),
    )

    if creds.valid:
        return creds

    logger.info("Refreshing Google credentials for credential %s", payload.id)
    try:
        creds.refresh(Request())
    except RefreshError as e:
        if "invalid_grant" not in str(e):
            raise
        payload.invalid = True
        logger.warning("Credential %s marked invalid: refresh token rejected", payload.id)
        raise InvalidCredentialsError(f"Credential {payload.id} is no longer valid: {e}")

    key["access_token"] = creds.token
    if creds.expiry:
        key["expiry_date"] = int(creds.expiry.replace(tzinfo=timezone.utc).timestamp() * 1000)
    if on_refresh:
        on_refresh(payload)
    return creds


def get_user_creds_for_aiogoogle(credentials: Credentials) -> UserCreds:
    """Convert google-auth credentials to aiogoogle UserCreds."""
    return UserCreds(
        access_token=credentials.token,
        refresh_token=credentials.refresh_token,
        token_uri=credentials.token_uri,
        scopes=list(credentials.scopes or SCOPES),
    )


def get_client_creds_for_aiogoogle(app_keys: Dict[str, str]) -> ClientCreds:
    """Convert an OAuth client configuration to aiogoogle ClientCreds."""
    return ClientCreds(
        client_id=app_keys["client_id"],
        client_secret=app_keys["client_secret"],
        scopes=SCOPES,
    )


@asynccontextmanager
async def async_calendar_service(credentials: Credentials, app_keys: Optional[Dict[str, str]] = None):
    """
    Async context manager for a Calendar v3 service.

    Yields:
        Tuple of (aiogoogle instance, calendar service)
    """
    user_creds = get_user_creds_for_aiogoogle(credentials)
    client_creds = get_client_creds_for_aiogoogle(app_keys) if app_keys else None

    async with Aiogoogle(user_creds=user_creds, client_creds=client_creds) as aiogoogle:
        calendar_v3 = await aiogoogle.discover("calendar", "v3")
        yield aiogoogle, calendar_v3
