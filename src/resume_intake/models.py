"""Data models for Resume Intake."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class LeafPart:
    """A single body part: text, attachment or anything else with content."""

    media_type: str  # e.g. "text", "application"
    subtype: str  # e.g. "plain", "pdf"
    disposition: str = ""  # "attachment", "inline" or ""
    filename: str = ""
    size: int = 0
    charset: str = ""
    encoding: str = ""  # Content-Transfer-Encoding


@dataclass(frozen=True)
class MultiPart:
    """A container part whose children are further structure nodes."""

    subtype: str  # e.g. "mixed", "alternative"
    children: tuple[StructureNode, ...] = ()


StructureNode = Union[LeafPart, MultiPart]


@dataclass(frozen=True)
class MessageMeta:
    """Envelope and structure of a single mailbox message."""

    message_id: str
    uid: str
    sender: str  # "Name <address>"
    sender_email: str
    subject: str
    structure: StructureNode | None = None
    sender_name: str = ""


@dataclass(frozen=True)
class AttachmentDescriptor:
    filename: str
    part: str  # dot-joined 1-based path, e.g. "2.1"
    media_type: str
    size: int = 0


@dataclass(frozen=True)
class TextPartRef:
    part: str
    media_type: str  # "text/plain" or "text/html"
    charset: str = ""


@dataclass(frozen=True)
class ClassificationResult:
    is_job_application: bool
    confidence: int
    matched_keywords: list[str] = field(default_factory=list)


@dataclass
class ParsedResume:
    """Structured fields derived from resume text."""

    name: str = ""
    email: str = ""
    phone: str = ""
    domain: str = ""
    experience_level: str = ""
    notice_period: str = ""
    resume_text: str = ""


@dataclass
class LogEntry:
    """Terminal outcome of one message+attachment ingestion attempt."""

    message_id: str  # compound key: "<message id>-<attachment filename>"
    status: str
    uid: str = ""
    sender: str = ""
    subject: str = ""
    attachment_name: str = ""
    candidate_id: int | None = None
    error_message: str = ""
    processed_at: str = field(default_factory=lambda: datetime.now().isoformat())
    id: int | None = None


@dataclass
class Candidate:
    email: str
    name: str
    phone: str = ""
    domain: str = ""
    experience_level: str = ""
    notice_period: str = ""
    resume_url: str = ""
    resume_text: str = ""
    status: str = ""
    source: str = ""
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    id: int | None = None


@dataclass
class ScanOutcome:
    """One row of a scan report, produced for every resume-bearing message."""

    message_id: str
    status: str
    attachment: str = ""
    reason: str = ""
    error: str = ""
    candidate_id: int | None = None
    candidate_name: str = ""
    email: str = ""


@dataclass
class ScanReport:
    message: str
    results: list[ScanOutcome] = field(default_factory=list)
    scanned_at: datetime | None = None
    triggered_by: str | None = None


@dataclass(frozen=True)
class ScanStatus:
    """Point-in-time snapshot of the scanner state."""

    running: bool
    scanning: bool
    last_scan_time: datetime | None
    total_processed: int
    last_error: str | None
    counts: dict[str, int] = field(default_factory=dict)
