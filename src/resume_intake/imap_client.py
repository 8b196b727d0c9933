"""IMAP implementation of the mailbox client."""

from __future__ import annotations

import email
import imaplib
import logging
from email import policy
from email.message import EmailMessage

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .constants import MAX_STRUCTURE_DEPTH
from .errors import MailboxConnectionError
from .mailbox import FolderLock, format_sender, parse_from_header
from .models import LeafPart, MessageMeta, MultiPart, StructureNode

logger = logging.getLogger(__name__)


def message_structure(part: EmailMessage, depth: int = 0) -> StructureNode:
    """Build a structure tree from a parsed message."""
    if depth > MAX_STRUCTURE_DEPTH:
        raise ValueError(f"Message structure nested deeper than {MAX_STRUCTURE_DEPTH} levels")

    if part.is_multipart():
        return MultiPart(
            subtype=part.get_content_subtype(),
            children=tuple(message_structure(child, depth + 1) for child in part.iter_parts()),
        )

    payload = part.get_payload()
    return LeafPart(
        media_type=part.get_content_maintype(),
        subtype=part.get_content_subtype(),
        disposition=part.get_content_disposition() or "",
        filename=part.get_filename() or "",
        size=len(payload) if isinstance(payload, (str, bytes)) else 0,
        charset=part.get_content_charset() or "",
        encoding=str(part.get("Content-Transfer-Encoding", "")).lower(),
    )


def _locate_part(message: EmailMessage, part: str) -> EmailMessage:
    current = message
    for index in part.split("."):
        if current.is_multipart():
            children = list(current.iter_parts())
            position = int(index) - 1
            if not 0 <= position < len(children):
                raise KeyError(f"Part {part} not found")
            current = children[position]
        elif index != "1":
            raise KeyError(f"Part {part} not found")
    return current


class ImapMailbox:
    """Mailbox session over IMAP.

    Each message is fetched once as a whole (BODY.PEEK[], so nothing is marked
    as seen). Only the most recently fetched message is kept for download_part();
    fetching another message evicts it.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self._conn: imaplib.IMAP4 | None = None
        self._current_ref: str | None = None
        self._current: EmailMessage | None = None

    @retry(
        retry=retry_if_exception_type((imaplib.IMAP4.abort, OSError)),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    def _open(self) -> imaplib.IMAP4:
        factory = imaplib.IMAP4_SSL if self.use_tls else imaplib.IMAP4
        conn = factory(self.host, self.port, timeout=self.timeout)
        conn.login(self.user, self.password)
        return conn

    @property
    def conn(self) -> imaplib.IMAP4:
        if self._conn is None:
            raise MailboxConnectionError("Mailbox session is not connected")
        return self._conn

    def connect(self) -> None:
        try:
            self._conn = self._open()
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxConnectionError(f"Could not connect to {self.host}:{self.port}: {exc}") from exc
        logger.debug("Connected to %s:%s as %s", self.host, self.port, self.user)

    def acquire_folder_lock(self, folder: str) -> FolderLock:
        try:
            typ, data = self.conn.select(f'"{folder}"', readonly=True)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxConnectionError(f"Could not open folder {folder}: {exc}") from exc
        if typ != "OK":
            raise MailboxConnectionError(f"Could not open folder {folder}: {data!r}")
        return FolderLock(folder, on_release=self._close_folder)

    def _close_folder(self) -> None:
        if self._conn is not None and self._conn.state == "SELECTED":
            self._conn.close()

    def search_all(self) -> list[str]:
        try:
            typ, data = self.conn.uid("SEARCH", None, "ALL")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxConnectionError(f"Mailbox search failed: {exc}") from exc
        if typ != "OK":
            raise MailboxConnectionError(f"Mailbox search failed: {data!r}")
        if not data or not data[0]:
            return []
        return [uid.decode() for uid in data[0].split()]

    def fetch_metadata(self, message_ref: str) -> MessageMeta:
        self._current_ref, self._current = None, None
        try:
            typ, data = self.conn.uid("FETCH", message_ref, "(BODY.PEEK[])")
        except (imaplib.IMAP4.abort, OSError) as exc:
            raise MailboxConnectionError(f"Connection lost while fetching {message_ref}: {exc}") from exc
        raw = next((item[1] for item in data or [] if isinstance(item, tuple)), None)
        if typ != "OK" or raw is None:
            raise KeyError(f"Message {message_ref} could not be fetched")

        message = email.message_from_bytes(raw, policy=policy.default)
        self._current_ref, self._current = message_ref, message

        name, address = parse_from_header(str(message.get("From", "")))
        return MessageMeta(
            message_id=str(message.get("Message-ID", "")).strip() or f"uid-{message_ref}",
            uid=message_ref,
            sender=format_sender(name, address),
            sender_email=address.lower(),
            sender_name=name,
            subject=str(message.get("Subject", "")) or "(no subject)",
            structure=message_structure(message),
        )

    def download_part(self, message_ref: str, part: str) -> bytes:
        if message_ref != self._current_ref:
            self.fetch_metadata(message_ref)
        leaf = _locate_part(self._current, part)
        return leaf.get_payload(decode=True) or b""

    def logout(self) -> None:
        self._current_ref, self._current = None, None
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            conn.logout()
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.debug("Logout from %s failed: %s", self.host, exc)
