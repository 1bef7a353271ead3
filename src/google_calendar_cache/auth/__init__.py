from .auth import get_calendar_service
from .credentials import (
    CredentialPayload, google_credentials_from_payload, async_calendar_service,
    get_user_creds_for_aiogoogle, get_client_creds_for_aiogoogle
)

__all__ = [
    "get_calendar_service",
    "CredentialPayload",
    "google_credentials_from_payload",
    "async_calendar_service",
    "get_user_creds_for_aiogoogle",
    "get_client_creds_for_aiogoogle",
]
