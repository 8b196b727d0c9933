"""Rich-based display functions for Resume Intake."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .constants import STATUS_DUPLICATE, STATUS_FAILED, STATUS_PROCESSED
from .models import Candidate, LogEntry, ScanReport, ScanStatus

console = Console()

_STATUS_COLORS = {
    STATUS_PROCESSED: "green",
    STATUS_DUPLICATE: "yellow",
    STATUS_FAILED: "red",
}


def setup_logging(level: str = "INFO") -> None:
    """Route stdlib logging through Rich on the shared console."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # Keep third-party chatter out of the scan output
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("pdfminer").setLevel(logging.WARNING)


def _status_color(status: str) -> str:
    return _STATUS_COLORS.get(status, "dim")


def display_scan_report(report: ScanReport) -> None:
    """Display one row per resume-bearing message handled by a scan."""
    table = Table(title="Scan Results")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Message")
    table.add_column("Attachment")
    table.add_column("Status")
    table.add_column("Details")

    for idx, row in enumerate(report.results, start=1):
        color = _status_color(row.status)
        if row.error:
            details = row.error
        elif row.reason:
            details = row.reason
        else:
            details = " ".join(p for p in (row.candidate_name, row.email) if p)
        table.add_row(
            str(idx),
            row.message_id,
            row.attachment,
            f"[{color}]{row.status}[/{color}]",
            details,
        )

    console.print(table)

    tally: dict[str, int] = {}
    for row in report.results:
        tally[row.status] = tally.get(row.status, 0) + 1
    summary = "  |  ".join(f"{status}: {count}" for status, count in sorted(tally.items())) or "nothing to do"
    console.print(Panel(f"{report.message}  |  {summary}", title="Summary"))


def display_status(status: ScanStatus) -> None:
    last_scan = status.last_scan_time.isoformat(timespec="seconds") if status.last_scan_time else "never"
    lines = [
        f"[bold]Auto-scan:[/bold] {'running' if status.running else 'stopped'}",
        f"[bold]Scanning now:[/bold] {'yes' if status.scanning else 'no'}",
        f"[bold]Last scan:[/bold] {last_scan}",
        f"[bold]Processed:[/bold] {status.total_processed}",
        f"[bold]Last error:[/bold] {status.last_error or '-'}",
    ]
    if status.counts:
        lines.append("")
        for log_status, count in status.counts.items():
            color = _status_color(log_status)
            lines.append(f"  [{color}]{log_status}[/{color}]: {count}")

    console.print(Panel("\n".join(lines), title="Scanner Status"))


def display_log_entries(entries: list[LogEntry], total: int, page: int, pages: int) -> None:
    table = Table(title=f"Ingestion Log (page {page}/{max(pages, 1)}, {total} entries)")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("When")
    table.add_column("From")
    table.add_column("Subject")
    table.add_column("Attachment")
    table.add_column("Status")
    table.add_column("Candidate", justify="right")
    table.add_column("Error")

    for entry in entries:
        color = _status_color(entry.status)
        table.add_row(
            str(entry.id),
            entry.processed_at or "",
            entry.sender or "",
            entry.subject or "",
            entry.attachment_name or "",
            f"[{color}]{entry.status}[/{color}]",
            str(entry.candidate_id) if entry.candidate_id is not None else "",
            entry.error_message or "",
        )

    console.print(table)


def display_candidates(candidates: list[Candidate]) -> None:
    table = Table(title="Candidates")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Phone")
    table.add_column("Domain")
    table.add_column("Experience")
    table.add_column("Notice")

    for c in candidates:
        table.add_row(
            str(c.id),
            c.name,
            c.email,
            c.phone or "",
            c.domain or "",
            c.experience_level or "",
            c.notice_period or "",
        )

    console.print(table)
