"""OAuth credentials for reading a mailbox through the Gmail API."""

from __future__ import annotations

import logging
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from .constants import CREDENTIALS_PATH, SCOPES, TOKEN_PATH

logger = logging.getLogger(__name__)


def load_credentials(
    credentials_path: Path = CREDENTIALS_PATH,
    token_path: Path = TOKEN_PATH,
) -> Credentials:
    """Return read-only Gmail credentials.

    A cached token is reused as is while valid and refreshed when expired.
    Otherwise the browser consent flow runs against the OAuth client secrets
    at credentials_path. The token file is rewritten only when it changed.
    """
    creds = Credentials.from_authorized_user_file(str(token_path), SCOPES) if token_path.exists() else None
    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        logger.debug("Refreshing Gmail token from %s", token_path)
        creds.refresh(Request())
    else:
        if not credentials_path.exists():
            raise FileNotFoundError(
                f"No Gmail token at {token_path} and no OAuth client secrets at {credentials_path}. "
                "Create a Desktop OAuth client in the Google Cloud Console and save its JSON there."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), SCOPES)
        creds = flow.run_local_server(port=0)

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    return creds


def get_gmail_service() -> Resource:
    return build("gmail", "v1", credentials=load_credentials(), cache_discovery=False)


def check_auth() -> tuple[bool, str]:
    """Return (ok, message) naming the authenticated account or the failure."""
    try:
        profile = get_gmail_service().users().getProfile(userId="me").execute()
    except Exception as exc:  # noqa: BLE001
        return False, f"Authentication failed: {exc}"
    return True, f"Authenticated as {profile['emailAddress']}"
