"""Tests for the SQLite intake store."""

import sqlite3
from datetime import datetime

import pytest

from resume_intake.models import Candidate, LogEntry
from resume_intake.store import IntakeStore, ResumeFileStore


def test_create_and_find_candidate(tmp_path):
    """Create a candidate and look it up by email, ignoring case."""
    with IntakeStore(db_path=tmp_path / "intake.db") as store:
        created = store.create_candidate(
            Candidate(email="jane@example.com", name="Jane Roe", domain="Frontend", source="email")
        )
        found = store.find_candidate_by_email("JANE@example.com")

    assert created.id is not None
    assert found is not None
    assert found.id == created.id
    assert found.name == "Jane Roe"
    assert found.domain == "Frontend"


def test_candidate_email_is_unique(tmp_path):
    with IntakeStore(db_path=tmp_path / "intake.db") as store:
        store.create_candidate(Candidate(email="jane@example.com", name="Jane"))
        with pytest.raises(sqlite3.IntegrityError):
            store.create_candidate(Candidate(email="jane@example.com", name="Jane again"))


def test_list_candidates_newest_first(tmp_path):
    with IntakeStore(db_path=tmp_path / "intake.db") as store:
        for i in range(3):
            store.create_candidate(Candidate(email=f"c{i}@example.com", name=f"C{i}"))
        listed = store.list_candidates(limit=2)

    assert [c.email for c in listed] == ["c2@example.com", "c1@example.com"]


def test_log_entries_persist_across_connections(tmp_path):
    """Entries written by one store instance are visible to the next."""
    db_path = tmp_path / "intake.db"
    with IntakeStore(db_path=db_path) as store:
        store.insert_log(LogEntry(message_id="<m1>-cv.pdf", status="processed", attachment_name="cv.pdf"))

    with IntakeStore(db_path=db_path) as store:
        entry = store.find_log_by_key("<m1>-cv.pdf")

    assert entry is not None
    assert entry.status == "processed"
    assert entry.attachment_name == "cv.pdf"


def test_list_logs_paginates(tmp_path):
    with IntakeStore(db_path=tmp_path / "intake.db") as store:
        for i in range(5):
            store.insert_log(LogEntry(message_id=f"m{i}", status="processed"))
        page_one, total = store.list_logs(page=1, limit=2)
        page_three, _ = store.list_logs(page=3, limit=2)

    assert total == 5
    assert [e.message_id for e in page_one] == ["m4", "m3"]
    assert [e.message_id for e in page_three] == ["m0"]


def test_count_logs_by_status(tmp_path):
    with IntakeStore(db_path=tmp_path / "intake.db") as store:
        store.insert_log(LogEntry(message_id="a", status="processed"))
        store.insert_log(LogEntry(message_id="b", status="failed"))
        store.insert_log(LogEntry(message_id="c", status="failed"))
        counts = store.count_logs_by_status()

    assert counts == {"processed": 1, "failed": 2, "duplicate": 0}


def test_delete_and_clear_logs(tmp_path):
    with IntakeStore(db_path=tmp_path / "intake.db") as store:
        first = store.insert_log(LogEntry(message_id="a", status="failed"))
        store.insert_log(LogEntry(message_id="b", status="processed"))

        assert store.delete_log_by_id(first.id) is True
        assert store.delete_log_by_id(first.id) is False
        assert store.find_log_by_key("a") is None

        assert store.clear_logs() == 1
        assert store.list_logs() == ([], 0)


def test_resume_file_store_sanitizes_names(tmp_path):
    files = ResumeFileStore(tmp_path / "resumes")
    path = files.store(b"%PDF-1.4", "My CV (final).pdf", "application/pdf")

    saved = tmp_path / "resumes" / path.rsplit("/", 1)[-1]
    assert saved.read_bytes() == b"%PDF-1.4"
    assert saved.name.endswith("-My_CV__final_.pdf")


def test_scan_state_round_trip(tmp_path):
    db_path = tmp_path / "intake.db"
    with IntakeStore(db_path=db_path) as store:
        assert store.load_scan_state() == (None, None, 0)
        store.save_scan_state(datetime(2024, 5, 1, 9, 30), None, 3)
        store.save_scan_state(datetime(2024, 5, 1, 9, 35), "timeout", 4)

    with IntakeStore(db_path=db_path) as store:
        assert store.load_scan_state() == (datetime(2024, 5, 1, 9, 35), "timeout", 4)
