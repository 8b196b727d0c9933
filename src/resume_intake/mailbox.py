"""Mailbox client capability consumed by the scanner."""

from __future__ import annotations

import re
from typing import Callable, Protocol

from .models import MessageMeta


class FolderLock:
    """Exclusive hold on a mailbox folder for the duration of one scan pass."""

    def __init__(self, folder: str, on_release: Callable[[], None] | None = None) -> None:
        self.folder = folder
        self._on_release = on_release
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        if self._on_release:
            self._on_release()

    def __enter__(self) -> FolderLock:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.release()


class MailboxClient(Protocol):
    """One stateful mailbox session. Not safe for concurrent use."""

    def connect(self) -> None: ...

    def acquire_folder_lock(self, folder: str) -> FolderLock: ...

    def search_all(self) -> list[str]: ...

    def fetch_metadata(self, message_ref: str) -> MessageMeta: ...

    def download_part(self, message_ref: str, part: str) -> bytes: ...

    def logout(self) -> None: ...


_FROM_RE = re.compile(r"^(.*?)\s*<([^>]+)>$")


def parse_from_header(from_value: str) -> tuple[str, str]:
    """Parse a From header into (display name, email address).

    Handles formats like:
      "John Doe <john@example.com>" -> ("John Doe", "john@example.com")
      "<john@example.com>"          -> ("", "john@example.com")
      "john@example.com"            -> ("", "john@example.com")
    """
    if not from_value:
        return ("", "")
    m = _FROM_RE.match(from_value.strip())
    if m:
        name = m.group(1).strip().strip('"').strip("'")
        return (name, m.group(2).strip())
    email = from_value.strip().strip("<>")
    return ("", email)


def format_sender(name: str, address: str) -> str:
    if not name and not address:
        return "unknown"
    if not name:
        return address
    return f"{name} <{address}>"
