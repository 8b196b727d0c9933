"""Gmail API implementation of the mailbox client."""

from __future__ import annotations

import base64
import logging
import re
from typing import Callable

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .constants import MAX_STRUCTURE_DEPTH, PAGE_SIZE
from .errors import MailboxConnectionError
from .mailbox import FolderLock, format_sender, parse_from_header
from .models import LeafPart, MessageMeta, MultiPart, StructureNode

logger = logging.getLogger(__name__)

_CHARSET_RE = re.compile(r'charset="?([\w.:-]+)"?', re.IGNORECASE)


def _is_retryable_http_error(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and exc.resp.status in (429, 500, 503)


@retry(
    retry=retry_if_exception(_is_retryable_http_error),
    wait=wait_exponential(multiplier=1, min=1, max=60),
    stop=stop_after_attempt(5),
    reraise=True,
)
def _execute(request) -> dict:
    return request.execute()


def _headers(payload: dict) -> dict[str, str]:
    return {h["name"].lower(): h["value"] for h in payload.get("headers", [])}


def payload_structure(payload: dict, depth: int = 0) -> StructureNode:
    """Build a structure tree from a Gmail message payload."""
    if depth > MAX_STRUCTURE_DEPTH:
        raise ValueError(f"Message structure nested deeper than {MAX_STRUCTURE_DEPTH} levels")

    maintype, _, subtype = payload.get("mimeType", "").lower().partition("/")
    parts = payload.get("parts")
    if maintype == "multipart" or parts:
        return MultiPart(
            subtype=subtype,
            children=tuple(payload_structure(p, depth + 1) for p in parts or []),
        )

    headers = _headers(payload)
    filename = payload.get("filename", "")
    disposition = headers.get("content-disposition", "").split(";")[0].strip().lower()
    if filename and not disposition:
        disposition = "attachment"
    charset = _CHARSET_RE.search(headers.get("content-type", ""))

    return LeafPart(
        media_type=maintype,
        subtype=subtype,
        disposition=disposition,
        filename=filename,
        size=payload.get("body", {}).get("size", 0),
        charset=charset.group(1) if charset else "",
        encoding=headers.get("content-transfer-encoding", "").lower(),
    )


def _locate_part(payload: dict, part: str) -> dict:
    current = payload
    for index in part.split("."):
        children = current.get("parts")
        if children:
            position = int(index) - 1
            if not 0 <= position < len(children):
                raise KeyError(f"Part {part} not found")
            current = children[position]
        elif index != "1":
            raise KeyError(f"Part {part} not found")
    return current


def _b64decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


class GmailMailbox:
    """Mailbox session over the Gmail API.

    The API has no folder selection, so the folder lock only records which
    label to list. Only the most recently fetched payload is kept.
    """

    def __init__(self, service_factory: Callable | None = None) -> None:
        if service_factory is None:
            from .auth import get_gmail_service

            service_factory = get_gmail_service
        self._service_factory = service_factory
        self._service = None
        self._label = "INBOX"
        self._current_ref: str | None = None
        self._current: dict = {}

    @property
    def service(self):
        if self._service is None:
            raise MailboxConnectionError("Gmail session is not connected")
        return self._service

    def connect(self) -> None:
        try:
            self._service = self._service_factory()
        except (FileNotFoundError, GoogleAuthError, HttpError) as exc:
            raise MailboxConnectionError(f"Could not connect to Gmail: {exc}") from exc

    def acquire_folder_lock(self, folder: str) -> FolderLock:
        self._label = "INBOX" if folder.upper() == "INBOX" else folder
        return FolderLock(folder)

    def search_all(self) -> list[str]:
        """List all message IDs under the selected label, handling pagination."""
        ids: list[str] = []
        page_token: str | None = None

        try:
            while True:
                kwargs: dict = {
                    "userId": "me",
                    "labelIds": [self._label],
                    "maxResults": PAGE_SIZE,
                    "fields": "messages/id,nextPageToken",
                }
                if page_token:
                    kwargs["pageToken"] = page_token

                resp = _execute(self.service.users().messages().list(**kwargs))
                ids.extend(msg["id"] for msg in resp.get("messages", []))

                page_token = resp.get("nextPageToken")
                if not page_token:
                    break
        except HttpError as exc:
            raise MailboxConnectionError(f"Gmail search failed: {exc}") from exc

        return ids

    def fetch_metadata(self, message_ref: str) -> MessageMeta:
        self._current_ref, self._current = None, {}
        response = _execute(
            self.service.users().messages().get(userId="me", id=message_ref, format="full")
        )
        payload = response.get("payload", {})
        self._current_ref, self._current = message_ref, payload

        headers = _headers(payload)
        name, address = parse_from_header(headers.get("from", ""))
        return MessageMeta(
            message_id=headers.get("message-id", "").strip() or f"uid-{message_ref}",
            uid=message_ref,
            sender=format_sender(name, address),
            sender_email=address.lower(),
            sender_name=name,
            subject=headers.get("subject", "") or "(no subject)",
            structure=payload_structure(payload),
        )

    def download_part(self, message_ref: str, part: str) -> bytes:
        if message_ref != self._current_ref:
            self.fetch_metadata(message_ref)
        body = _locate_part(self._current, part).get("body", {})

        if body.get("data"):
            return _b64decode(body["data"])
        if body.get("attachmentId"):
            resp = _execute(
                self.service.users().messages().attachments().get(
                    userId="me", messageId=message_ref, id=body["attachmentId"]
                )
            )
            return _b64decode(resp.get("data", ""))
        return b""

    def logout(self) -> None:
        self._current_ref, self._current = None, {}
        self._service = None
