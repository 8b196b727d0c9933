"""Idempotency gate backed by the ingestion log."""

from __future__ import annotations

import logging

from .constants import STATUS_FAILED
from .models import LogEntry
from .store import IntakeStore

logger = logging.getLogger(__name__)


def compound_key(message_id: str, filename: str) -> str:
    """Identity of one message+attachment attempt."""
    return f"{message_id}-{filename}"


class IngestionGuard:
    """Check-then-act gate over the ingestion log.

    Safe only while scan passes are serialized.
    """

    def __init__(self, store: IntakeStore) -> None:
        self.store = store

    def prior_outcome(self, key: str) -> LogEntry | None:
        return self.store.find_log_by_key(key)

    def record_outcome(self, entry: LogEntry) -> LogEntry:
        return self.store.insert_log(entry)

    def reset_for_retry(self, entry: LogEntry) -> None:
        if entry.id is not None:
            self.store.delete_log_by_id(entry.id)
        logger.info("Retrying previously failed attachment %s", entry.message_id)

    def should_skip(self, key: str) -> bool:
        """True when the key already has a terminal, non-failed outcome.

        A failed outcome is deleted so the attempt can run again cleanly.
        """
        prior = self.prior_outcome(key)
        if prior is None:
            return False
        if prior.status != STATUS_FAILED:
            return True
        self.reset_for_retry(prior)
        return False
