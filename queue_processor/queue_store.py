# filename: queue_store.py

import logging
import time
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from .errors import NotFoundError
from .models.email_records import PENDING, QueueEntry
from .tables import EMAIL_QUEUE_TABLE
from .utils.time_utils import format_datetime, utc_now
from .utils.validation import QueueEntryPayload

logger = logging.getLogger(__name__)


def generate_entry_id() -> str:
    """Unique queue entry id, roughly sortable by creation time"""
    return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class QueueStore:
    def __init__(self, db, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def list_entries(self) -> List[QueueEntry]:
        rows = self.db.get_all(EMAIL_QUEUE_TABLE, order_by="created_at")
        return [QueueEntry.from_row(row) for row in rows]

    def list_pending(self) -> List[QueueEntry]:
        """Entries still waiting to be processed, oldest first"""
        rows = self.db.get_by_status(EMAIL_QUEUE_TABLE, PENDING, include_null=True,
                                     order_by="created_at")
        return [QueueEntry.from_row(row) for row in rows]

    def get_entry(self, entry_id: str) -> QueueEntry:
        row = self.db.get_one(EMAIL_QUEUE_TABLE, "id", entry_id)
        if not row:
            raise NotFoundError(f"Queue entry {entry_id} not found")
        return QueueEntry.from_row(row)

    def build_entry(self, payload: QueueEntryPayload, created_at: datetime,
                    retry_count: int = 0) -> QueueEntry:
        return QueueEntry(
            id=payload.id or generate_entry_id(),
            recipient_email=payload.recipient_email,
            recipient_name=payload.recipient_name or "N/A",
            template_id=payload.template_id,
            sender_email=payload.sender_email,
            sender_name=payload.sender_name or "N/A",
            credentials_ref=payload.credentials_ref or payload.sender_email,
            send_mode=payload.send_mode,
            scheduled_date=payload.scheduled_date,
            entry_data=payload.entry_data,
            status=PENDING,
            created_at=created_at,
            retry_count=retry_count,
        )

    def enqueue(self, payloads: Iterable[QueueEntryPayload]) -> List[QueueEntry]:
        """Insert already validated entries in one write"""
        now = self.clock()
        # distinct timestamps keep the batch order when sorting by created_at
        entries = [self.build_entry(payload, now + timedelta(microseconds=i))
                   for i, payload in enumerate(payloads)]
        if entries:
            self.db.post(EMAIL_QUEUE_TABLE, [entry.to_row() for entry in entries])
            logger.info(f"Added {len(entries)} entries to email queue")
        return entries

    def add_entry(self, entry: QueueEntry) -> QueueEntry:
        self.db.post(EMAIL_QUEUE_TABLE, entry.to_row())
        return entry

    def mark(self, entry_id: str, status: str, error: Optional[str] = None) -> None:
        data: Dict = {
            "status": status,
            "processed_at": format_datetime(self.clock()),
            "error_message": error,
        }
        self.db.update(EMAIL_QUEUE_TABLE, entry_id, data)
