# filename: email_processor.py

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .counter_store import CounterStore
from .errors import BlockedError, NotFoundError, TransportError
from .failed_store import FailedStore
from .models.email_records import (
    FAILED, IMMEDIATE, MAX_RETRIES, PENDING, PROCESSED, SCHEDULED, SCHEDULED_MODE, SENT,
    FailedEmail, QueueEntry, ScheduledEmail,
)
from .queue_store import QueueStore, generate_entry_id
from .scheduled_store import ScheduledStore
from .stats_store import StatsStore
from .template_store import TemplateStore
from .utils.template_utils import render_template
from .utils.time_utils import utc_now
from .utils.validation import validate_queue_entry

logger = logging.getLogger(__name__)

# Errors that fail a single entry; anything else (store errors) aborts the run
ENTRY_ERRORS = (NotFoundError, BlockedError, TransportError)


@dataclass
class ProcessingSummary:
    processed: int = 0
    failed: int = 0
    scheduled: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"processed": self.processed, "failed": self.failed, "scheduled": self.scheduled}


class EmailProcessor:
    """
    Drains the email queue and the scheduled emails table.

    Every call re-reads what it needs from the store handle and writes its
    results back before returning; nothing is kept in memory between calls.
    Entries are handled one at a time so sends for the same sender never race
    on the counter row within a run.
    """

    def __init__(self, db, transport, current_sender: Optional[str] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.transport = transport
        self.clock = clock
        self.current_sender = current_sender or next(iter(transport.sender_ids), None)

        self.counters = CounterStore(db, clock)
        self.stats = StatsStore(db, clock)
        self.queue = QueueStore(db, clock)
        self.scheduled = ScheduledStore(db, clock)
        self.failed = FailedStore(db, clock)
        self.templates = TemplateStore(db)

    # ------------------------------------------------------------------
    # Enqueue
    # ------------------------------------------------------------------

    def enqueue(self, raw_entries: List[Dict[str, Any]]) -> List[QueueEntry]:
        """Validate every entry first so an invalid one leaves the queue untouched"""
        payloads = [validate_queue_entry(raw) for raw in raw_entries]
        return self.queue.enqueue(payloads)

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process_queue(self) -> ProcessingSummary:
        summary = ProcessingSummary()
        now = self.clock()
        entries = self.queue.list_pending()
        logger.info(f"Found {len(entries)} pending emails in queue")

        for entry in entries:
            if entry.send_mode == SCHEDULED_MODE and entry.scheduled_date and entry.scheduled_date > now:
                self.scheduled.schedule(entry)
                self.queue.mark(entry.id, SCHEDULED)
                summary.scheduled += 1
                continue

            is_direct = entry.send_mode != SCHEDULED_MODE
            if self._process_entry(entry, is_direct, self.queue.mark, source="queue"):
                summary.processed += 1
            else:
                summary.failed += 1

        self.stats.accumulate(processed=summary.processed, failed=summary.failed)
        logger.info(f"Email queue processing completed: {summary.to_dict()}")
        return summary

    def process_scheduled_emails(self) -> ProcessingSummary:
        summary = ProcessingSummary()
        due = self.scheduled.list_due(self.clock())
        logger.info(f"Found {len(due)} scheduled emails due for sending")

        for email in due:
            entry = email.to_queue_entry()
            if self._process_entry(entry, False, self._mark_scheduled, source="scheduled"):
                summary.processed += 1
            else:
                summary.failed += 1

        self.stats.accumulate(processed=summary.processed, failed=summary.failed)
        logger.info(f"Scheduled email processing completed: {summary.to_dict()}")
        return summary

    def _mark_scheduled(self, email_id: str, status: str, error: Optional[str] = None) -> None:
        self.scheduled.mark(email_id, status, error)
        # keep the originating queue row (if any) in step
        self.queue.mark(email_id, status, error)

    def _process_entry(self, entry: QueueEntry, is_direct: bool,
                       mark: Callable[..., None], source: str) -> bool:
        """Send one entry; per-entry errors are recorded, never raised"""
        template_name = None
        try:
            sender = self._resolve_sender(entry)
            template = self.templates.get_template(entry.template_id)
            template_name = template.name

            self.counters.record_send(entry.sender_email, is_direct=is_direct)

            subject, body = render_template(template.subject, template.body, entry.entry_data)
            self.transport.send(
                from_email=entry.sender_email,
                from_name=entry.sender_name,
                to=entry.recipient_email,
                subject=subject,
                body=body,
                credentials_ref=sender,
            )
        except ENTRY_ERRORS as e:
            error = str(e)
            mark(entry.id, FAILED, error)
            self.failed.record(entry, error, template_name=template_name, source=source)
            return False

        mark(entry.id, SENT)
        logger.info(f"Email {entry.id} sent to {entry.recipient_email} from {entry.sender_email}")
        return True

    def _resolve_sender(self, entry: QueueEntry) -> str:
        credentials_ref = entry.credentials_ref or entry.sender_email
        if credentials_ref not in self.transport.sender_ids:
            raise NotFoundError("Sender email not configured")
        return credentials_ref

    # ------------------------------------------------------------------
    # Failed emails
    # ------------------------------------------------------------------

    def get_failed_emails(self) -> List[FailedEmail]:
        return self.failed.list_failed()

    def retry_failed_email(self, email_id: str) -> Dict[str, Any]:
        """Re-admit a failed email as a new pending queue entry; delivery happens on the next run"""
        failed = self.failed.get(email_id)
        if not failed.can_retry:
            raise NotFoundError(f"Email {email_id} has reached max retries ({MAX_RETRIES})")

        meta = failed.metadata
        if not meta.get("templateId") or not meta.get("senderEmail"):
            raise NotFoundError(f"Email {email_id} is missing the data needed to retry it")

        entry = QueueEntry(
            id=generate_entry_id(),
            recipient_email=failed.recipient_email,
            recipient_name=meta.get("recipientName"),
            template_id=meta["templateId"],
            sender_email=meta["senderEmail"],
            sender_name=meta.get("senderName"),
            credentials_ref=meta.get("credentialsRef"),
            send_mode=IMMEDIATE,
            entry_data=meta.get("entryData") or {},
            status=PENDING,
            created_at=self.clock(),
            retry_count=failed.retry_count + 1,
        )
        self.queue.add_entry(entry)
        self.failed.delete(email_id)
        logger.info(f"Failed email {email_id} re-queued as {entry.id} (retry {entry.retry_count})")
        return {"message": f"Email {email_id} queued for retry", "entry": entry}

    def clear_failed_emails(self) -> Dict[str, Any]:
        removed = self.failed.clear()
        logger.warning(f"Cleared {removed} failed emails")
        return {"message": f"Cleared {removed} failed emails", "removed": removed}

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        return {
            "currentSender": self.current_sender,
            "configuredSenders": list(self.transport.sender_ids),
        }

    def queue_status(self) -> Dict[str, Any]:
        entries = self.queue.list_entries()
        stats = self.stats.get_current()

        done = sum(1 for e in entries if e.status in (SENT, PROCESSED, SCHEDULED))
        failed = sum(1 for e in entries if e.status == FAILED)
        pending = len(self.queue.list_pending())

        return {
            "totalInQueue": len(entries),
            "processedCount": stats.session_processed + done,
            "failedCount": failed,
            "pendingCount": pending,
            "hasFailedEntries": failed > 0,
            "hasUnprocessedEntries": pending > 0,
            "lastUpdated": self.clock().isoformat(),
        }

    def scheduled_overview(self) -> Dict[str, Any]:
        upcoming, overdue = self.scheduled.split_by_due(self.clock())
        emails: List[ScheduledEmail] = sorted(
            upcoming + overdue, key=lambda e: (e.scheduled_date is None, e.scheduled_date)
        )
        return {
            "total": len(emails),
            "upcoming": len(upcoming),
            "overdue": len(overdue),
            "emails": [email.to_dict() for email in emails],
        }
