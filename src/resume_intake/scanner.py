"""Scan orchestration: walk the mailbox, gate on content, ingest one resume per message."""

from __future__ import annotations

import html
import logging
import re
import threading
from datetime import datetime, timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .classifier import classify
from .config import Settings
from .constants import (
    CANDIDATE_SOURCE,
    CANDIDATE_STATUS_NEW,
    DEFAULT_DOMAIN,
    FRESHER_BUCKET,
    STATUS_DUPLICATE,
    STATUS_FAILED,
    STATUS_PROCESSED,
    STATUS_SKIPPED,
    UNKNOWN_CANDIDATE_NAME,
)
from .errors import MailboxConnectionError, MissingIdentityError, PreconditionError
from .extractor import extract_text, guess_mime_type
from .gmail_client import GmailMailbox
from .imap_client import ImapMailbox
from .ledger import IngestionGuard, compound_key
from .mailbox import MailboxClient
from .models import (
    AttachmentDescriptor,
    Candidate,
    LogEntry,
    MessageMeta,
    ScanOutcome,
    ScanReport,
    ScanStatus,
)
from .resume_parser import parse_resume_text
from .store import IntakeStore, ResumeFileStore
from .structure import find_first_text_part, resume_attachments

logger = logging.getLogger(__name__)

SCAN_JOB_ID = "resume-intake-scan"
MSG_SCAN_COMPLETE = "Scan complete"
MSG_SCAN_IN_PROGRESS = "Scan already in progress"


def create_mailbox(settings: Settings) -> MailboxClient:
    """Build the mailbox client selected by MAILBOX_PROVIDER."""
    if settings.mailbox_provider == "gmail":
        return GmailMailbox()
    if settings.mailbox_provider == "imap":
        return ImapMailbox(
            host=settings.imap_host,
            port=settings.imap_port,
            user=settings.imap_user or "",
            password=settings.imap_password or "",
            use_tls=settings.imap_tls,
        )
    raise PreconditionError(f"Unknown mailbox provider: {settings.mailbox_provider!r}")


def _html_to_text(markup: str) -> str:
    """Convert an HTML email body to plain text for classification."""
    text = re.sub(r"<style[^>]*>.*?</style>", "", markup, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<script[^>]*>.*?</script>", "", text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    text = html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def _decode(data: bytes, charset: str) -> str:
    try:
        return data.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return data.decode("utf-8", errors="replace")


class ResumeScanner:
    """Owns the scan lifecycle: single-flight passes and the optional schedule."""

    def __init__(
        self,
        settings: Settings,
        store: IntakeStore,
        file_store: ResumeFileStore | None = None,
        mailbox_factory: Callable[[], MailboxClient] | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.guard = IngestionGuard(store)
        self.file_store = file_store or ResumeFileStore(settings.resume_dir)
        self._mailbox_factory = mailbox_factory or (lambda: create_mailbox(settings))

        self._scan_lock = threading.Lock()
        self._scheduler: BackgroundScheduler | None = None
        # Carried over from earlier passes, including other processes.
        self._last_scan_time, self._last_error, self._total_processed = store.load_scan_state()

    # --- public API ---

    def scan(self, triggered_by: str | None = None) -> ScanReport:
        """Run one pass over the mailbox.

        Returns immediately with no results when another pass is running.
        Raises PreconditionError without credentials and re-raises
        session-level failures after recording them as the last error.
        """
        if not self._scan_lock.acquire(blocking=False):
            logger.info("Scan requested by %s while another scan is running", triggered_by or "user")
            return ScanReport(message=MSG_SCAN_IN_PROGRESS, triggered_by=triggered_by)
        try:
            return self._run_pass(triggered_by)
        finally:
            self._scan_lock.release()

    def start_schedule(self, interval_ms: int | None = None) -> dict:
        """Start periodic scans and trigger one right away."""
        if self._scheduler is not None:
            return {"message": "Auto-scan is already running"}

        interval_ms = interval_ms or self.settings.scan_interval_ms
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            self._scheduled_scan,
            IntervalTrigger(seconds=interval_ms / 1000),
            id=SCAN_JOB_ID,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Auto-scan started, every %d ms", interval_ms)
        return {"message": "Auto-scan started", "interval_ms": interval_ms}

    def stop_schedule(self) -> dict:
        if self._scheduler is None:
            return {"message": "Auto-scan is not running"}
        scheduler, self._scheduler = self._scheduler, None
        scheduler.shutdown(wait=False)
        logger.info("Auto-scan stopped")
        return {"message": "Auto-scan stopped"}

    def status(self) -> ScanStatus:
        return ScanStatus(
            running=self._scheduler is not None,
            scanning=self._scan_lock.locked(),
            last_scan_time=self._last_scan_time,
            total_processed=self._total_processed,
            last_error=self._last_error,
            counts=self.store.count_logs_by_status(),
        )

    # --- pass ---

    def _scheduled_scan(self) -> None:
        try:
            self.scan(triggered_by="scheduler")
        except Exception:  # noqa: BLE001
            logger.exception("Scheduled scan failed")

    def _run_pass(self, triggered_by: str | None) -> ScanReport:
        if not self.settings.has_mailbox_credentials():
            raise PreconditionError(
                "Mailbox credentials not configured. Set IMAP_USER and IMAP_PASS "
                "(or SMTP_USER and SMTP_PASS) in the environment or .env file."
            )

        logger.info("Scan started by %s", triggered_by or "user")
        results: list[ScanOutcome] = []
        mailbox = self._mailbox_factory()

        try:
            mailbox.connect()
            with mailbox.acquire_folder_lock(self.settings.imap_folder):
                message_refs = mailbox.search_all()
                logger.info("Found %d messages in %s", len(message_refs), self.settings.imap_folder)
                for ref in message_refs:
                    outcome = self._process_message(mailbox, ref)
                    if outcome is not None:
                        results.append(outcome)
            self._last_scan_time = datetime.now()
            self._last_error = None
        except Exception as exc:
            self._last_error = str(exc)
            logger.error("Email scan failed: %s", exc)
            raise
        finally:
            mailbox.logout()
            self.store.save_scan_state(self._last_scan_time, self._last_error, self._total_processed)

        logger.info("Scan complete: %d resume messages handled", len(results))
        return ScanReport(
            message=MSG_SCAN_COMPLETE,
            results=results,
            scanned_at=self._last_scan_time,
            triggered_by=triggered_by,
        )

    def _process_message(self, mailbox: MailboxClient, ref: str) -> ScanOutcome | None:
        try:
            meta = mailbox.fetch_metadata(ref)
            attachments = resume_attachments(meta.structure)
        except MailboxConnectionError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not read message %s: %s", ref, exc)
            return ScanOutcome(message_id=f"uid-{ref}", status=STATUS_FAILED, error=str(exc))

        if not attachments:
            return None

        # Only the first resume goes through; several files in one email are one applicant.
        attachment = attachments[0]

        verdict = classify(meta.subject, self._read_body(mailbox, meta))
        if not verdict.is_job_application:
            logger.debug("Skipping %s: confidence %d", meta.message_id, verdict.confidence)
            return ScanOutcome(
                message_id=meta.message_id,
                status=STATUS_SKIPPED,
                attachment=attachment.filename,
                reason=f"not a job application (confidence {verdict.confidence})",
            )

        return self._process_attachment(mailbox, meta, attachment)

    def _read_body(self, mailbox: MailboxClient, meta: MessageMeta) -> str:
        text_part = find_first_text_part(meta.structure)
        if text_part is None:
            return ""
        try:
            data = mailbox.download_part(meta.uid, text_part.part)
        except MailboxConnectionError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not read body of %s, classifying on subject only: %s", meta.message_id, exc)
            return ""
        body = _decode(data, text_part.charset)
        return _html_to_text(body) if text_part.media_type == "text/html" else body

    def _process_attachment(
        self,
        mailbox: MailboxClient,
        meta: MessageMeta,
        attachment: AttachmentDescriptor,
    ) -> ScanOutcome:
        key = compound_key(meta.message_id, attachment.filename)
        if self.guard.should_skip(key):
            return ScanOutcome(
                message_id=key,
                status=STATUS_SKIPPED,
                attachment=attachment.filename,
                reason="already processed",
            )

        def _log(status: str, candidate_id: int | None = None, error: str = "") -> None:
            self.guard.record_outcome(
                LogEntry(
                    message_id=key,
                    status=status,
                    uid=meta.uid,
                    sender=meta.sender,
                    subject=meta.subject,
                    attachment_name=attachment.filename,
                    candidate_id=candidate_id,
                    error_message=error,
                )
            )

        try:
            data = mailbox.download_part(meta.uid, attachment.part)
            text = extract_text(data, attachment.media_type, attachment.filename)
            parsed = parse_resume_text(text)

            candidate_email = (parsed.email or meta.sender_email).strip().lower()
            if not candidate_email:
                raise MissingIdentityError("Could not determine candidate email from resume or sender")

            existing = self.store.find_candidate_by_email(candidate_email)
            if existing is not None:
                _log(STATUS_DUPLICATE, existing.id, "Candidate with this email already exists")
                logger.info("Duplicate candidate %s from %s", candidate_email, key)
                return ScanOutcome(
                    message_id=key,
                    status=STATUS_DUPLICATE,
                    attachment=attachment.filename,
                    candidate_id=existing.id,
                    email=candidate_email,
                )

            content_type = guess_mime_type(attachment.filename)
            resume_url = self.file_store.store(data, attachment.filename, content_type)
            candidate = self.store.create_candidate(
                Candidate(
                    email=candidate_email,
                    name=parsed.name or UNKNOWN_CANDIDATE_NAME,
                    phone=parsed.phone,
                    domain=parsed.domain or DEFAULT_DOMAIN,
                    experience_level=parsed.experience_level or FRESHER_BUCKET,
                    notice_period=parsed.notice_period,
                    resume_url=resume_url,
                    resume_text=parsed.resume_text,
                    status=CANDIDATE_STATUS_NEW,
                    source=CANDIDATE_SOURCE,
                )
            )
        except MailboxConnectionError:
            raise
        except Exception as exc:  # noqa: BLE001
            _log(STATUS_FAILED, error=str(exc))
            logger.warning("Failed to ingest %s: %s", key, exc)
            return ScanOutcome(
                message_id=key,
                status=STATUS_FAILED,
                attachment=attachment.filename,
                error=str(exc),
            )

        _log(STATUS_PROCESSED, candidate.id)
        self._total_processed += 1
        logger.info("Created candidate %s <%s> from %s", candidate.name, candidate.email, key)
        return ScanOutcome(
            message_id=key,
            status=STATUS_PROCESSED,
            attachment=attachment.filename,
            candidate_id=candidate.id,
            candidate_name=candidate.name,
            email=candidate.email,
        )
