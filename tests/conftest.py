"""Shared fixtures for tests."""

from __future__ import annotations

import os

import pytest

from resume_intake.config import Settings
from resume_intake.errors import ExtractionError, MailboxConnectionError
from resume_intake.mailbox import FolderLock
from resume_intake.models import LeafPart, MessageMeta, MultiPart
from resume_intake.scanner import ResumeScanner
from resume_intake.store import IntakeStore, ResumeFileStore

_ATTACHMENT_TYPES = {
    ".pdf": ("application", "pdf"),
    ".docx": ("application", "vnd.openxmlformats-officedocument.wordprocessingml.document"),
    ".doc": ("application", "msword"),
}


def make_message(
    uid: str,
    subject: str,
    body: str,
    sender_email: str = "a@x.com",
    attachments: list[tuple[str, bytes]] | None = None,
    sender_name: str = "Applicant",
) -> tuple[MessageMeta, dict[str, bytes]]:
    """Build a multipart/mixed message: text body at "1", attachments from "2" on."""
    children = [LeafPart(media_type="text", subtype="plain", charset="utf-8")]
    parts = {"1": body.encode()}
    for index, (filename, data) in enumerate(attachments or [], start=2):
        media_type, subtype = _ATTACHMENT_TYPES.get(os.path.splitext(filename)[1], ("application", "octet-stream"))
        children.append(
            LeafPart(
                media_type=media_type,
                subtype=subtype,
                disposition="attachment",
                filename=filename,
                size=len(data),
            )
        )
        parts[str(index)] = data

    meta = MessageMeta(
        message_id=f"<{uid}@mail.example.com>",
        uid=uid,
        sender=f"{sender_name} <{sender_email}>",
        sender_email=sender_email,
        sender_name=sender_name,
        subject=subject,
        structure=MultiPart(subtype="mixed", children=tuple(children)),
    )
    return meta, parts


class FakeMailbox:
    """In-memory mailbox client that records how it is used."""

    def __init__(self, messages: dict | None = None, fail_connect: bool = False) -> None:
        self.messages = messages or {}
        self.fail_connect = fail_connect
        self.connected = False
        self.logged_out = False
        self.lock: FolderLock | None = None
        self.downloads: list[tuple[str, str]] = []

    def add(self, message: tuple[MessageMeta, dict[str, bytes]]) -> None:
        meta, parts = message
        self.messages[meta.uid] = (meta, parts)

    def connect(self) -> None:
        if self.fail_connect:
            raise MailboxConnectionError("Could not connect to imap.example.com:993: auth failed")
        self.connected = True

    def acquire_folder_lock(self, folder: str) -> FolderLock:
        self.lock = FolderLock(folder)
        return self.lock

    def search_all(self) -> list[str]:
        return list(self.messages)

    def fetch_metadata(self, message_ref: str) -> MessageMeta:
        return self.messages[message_ref][0]

    def download_part(self, message_ref: str, part: str) -> bytes:
        self.downloads.append((message_ref, part))
        return self.messages[message_ref][1][part]

    def logout(self) -> None:
        self.logged_out = True


def make_pdf(lines: list[str]) -> bytes:
    """Build a one-page PDF that draws each line in Helvetica."""
    content = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
    for line in lines:
        escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        content.append(f"({escaped}) Tj T*")
    content.append("ET")
    stream = "\n".join(content).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(out)


def fake_extract_text(data: bytes, declared_mime_type: str = "", filename: str = "") -> str:
    """Treat attachment bytes as the resume text; b"CORRUPT" fails like a broken PDF."""
    if data.startswith(b"CORRUPT"):
        raise ExtractionError("Failed to parse PDF content: unexpected EOF")
    return data.decode()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        mailbox_provider="imap",
        imap_user="hr@example.com",
        imap_password="secret",
        db_path=tmp_path / "intake.db",
        resume_dir=tmp_path / "resumes",
    )


@pytest.fixture
def store(settings):
    with IntakeStore(db_path=settings.db_path) as s:
        yield s


@pytest.fixture
def mailbox() -> FakeMailbox:
    return FakeMailbox()


@pytest.fixture
def scanner(settings, store, mailbox, monkeypatch) -> ResumeScanner:
    import resume_intake.scanner as scanner_module

    monkeypatch.setattr(scanner_module, "extract_text", fake_extract_text)
    return ResumeScanner(
        settings,
        store,
        file_store=ResumeFileStore(settings.resume_dir),
        mailbox_factory=lambda: mailbox,
    )


@pytest.fixture
def backend_application() -> tuple[MessageMeta, dict[str, bytes]]:
    resume = "Arjun Mehta\nBackend Developer\n5 years of experience in Node, MongoDB\n"
    return make_message(
        "101",
        subject="Application for Backend Developer",
        body="5 years of experience in Node, MongoDB",
        sender_email="a@x.com",
        attachments=[("arjun_resume.pdf", resume.encode())],
    )
