"""CLI entry point for Resume Intake."""

from __future__ import annotations

import math
import time

import click

from .auth import check_auth
from .config import Settings
from .constants import LOG_STATUSES, STATUS_PROCESSED
from .display import (
    console,
    display_candidates,
    display_log_entries,
    display_scan_report,
    display_status,
    setup_logging,
)
from .errors import IntakeError
from .models import LogEntry
from .scanner import ResumeScanner
from .store import IntakeStore


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


@click.group()
@click.version_option(version="0.1.0", prog_name="resume-intake")
@click.option("--log-level", default=None, help="Logging level (default from LOG_LEVEL or INFO).")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Resume Intake - turn job application emails into candidate records."""
    settings = Settings()
    setup_logging(log_level or settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.pass_context
def scan(ctx: click.Context) -> None:
    """Scan the mailbox once and ingest new resumes."""
    settings = _settings(ctx)
    with IntakeStore(db_path=settings.db_path) as store:
        scanner = ResumeScanner(settings, store)
        try:
            report = scanner.scan(triggered_by="cli")
        except IntakeError as e:
            raise click.ClickException(str(e)) from e

    display_scan_report(report)


@cli.command()
@click.option("--interval-ms", default=None, type=int, help="Milliseconds between scans (default SCAN_INTERVAL_MS).")
@click.pass_context
def watch(ctx: click.Context, interval_ms: int | None) -> None:
    """Scan now and then periodically until interrupted."""
    settings = _settings(ctx)
    if not settings.has_mailbox_credentials():
        raise click.ClickException("Mailbox credentials not configured. Set IMAP_USER and IMAP_PASS.")

    with IntakeStore(db_path=settings.db_path) as store:
        scanner = ResumeScanner(settings, store)
        result = scanner.start_schedule(interval_ms)
        console.print(f"[green]{result['message']}[/green] [dim](Ctrl-C to stop)[/dim]")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            pass
        finally:
            console.print(f"[dim]{scanner.stop_schedule()['message']}[/dim]")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show scanner status and ingestion log counts."""
    settings = _settings(ctx)
    with IntakeStore(db_path=settings.db_path) as store:
        display_status(ResumeScanner(settings, store).status())


@cli.command()
def auth() -> None:
    """Test Gmail API authentication (MAILBOX_PROVIDER=gmail)."""
    ok, message = check_auth()
    console.print(f"[green]{message}[/green]" if ok else f"[red]{message}[/red]")


@cli.command()
@click.option("-n", "--limit", default=50, type=int, help="Number of candidates to show.")
@click.pass_context
def candidates(ctx: click.Context, limit: int) -> None:
    """List the most recently created candidates."""
    with IntakeStore(db_path=_settings(ctx).db_path) as store:
        rows = store.list_candidates(limit=limit)

    if not rows:
        console.print("[dim]No candidates yet.[/dim]")
        return
    display_candidates(rows)


@cli.group(name="log")
def log_group() -> None:
    """Inspect and manage the ingestion log."""


@log_group.command(name="list")
@click.option("--page", default=1, type=int, help="Page number.")
@click.option("--limit", default=50, type=int, help="Entries per page.")
@click.pass_context
def log_list(ctx: click.Context, page: int, limit: int) -> None:
    """Show ingestion log entries, newest first."""
    with IntakeStore(db_path=_settings(ctx).db_path) as store:
        entries, total = store.list_logs(page=page, limit=limit)

    if total == 0:
        console.print("[dim]Ingestion log is empty.[/dim]")
        return
    display_log_entries(entries, total, page, math.ceil(total / limit))


@log_group.command(name="clear")
@click.pass_context
def log_clear(ctx: click.Context) -> None:
    """Delete all ingestion log entries."""
    with IntakeStore(db_path=_settings(ctx).db_path) as store:
        deleted = store.clear_logs()
    console.print(f"[green]Deleted {deleted} logs.[/green]")


@log_group.command(name="delete")
@click.argument("entry_id", type=int)
@click.pass_context
def log_delete(ctx: click.Context, entry_id: int) -> None:
    """Delete one ingestion log entry so its attachment is retried."""
    with IntakeStore(db_path=_settings(ctx).db_path) as store:
        deleted = store.delete_log_by_id(entry_id)
    if not deleted:
        raise click.ClickException(f"Log {entry_id} not found.")
    console.print("[green]Log deleted.[/green]")


@log_group.command(name="add")
@click.option("--sender", default="", help="Sender of the email.")
@click.option("--subject", default="", help="Subject of the email.")
@click.option("--attachment", default="", help="Attachment filename.")
@click.option("--status", "log_status", type=click.Choice(LOG_STATUSES), default=STATUS_PROCESSED)
@click.option("--error", default="", help="Error message for failed entries.")
@click.pass_context
def log_add(ctx: click.Context, sender: str, subject: str, attachment: str, log_status: str, error: str) -> None:
    """Record a manual ingestion log entry."""
    entry = LogEntry(
        message_id=f"manual-{int(time.time() * 1000)}",
        status=log_status,
        sender=sender,
        subject=subject,
        attachment_name=attachment,
        error_message=error,
    )
    with IntakeStore(db_path=_settings(ctx).db_path) as store:
        store.insert_log(entry)
    console.print(f"[green]Added log {entry.id}.[/green]")
