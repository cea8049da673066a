# filename: failed_store.py

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .errors import NotFoundError
from .models.email_records import FailedEmail, QueueEntry
from .tables import FAILED_EMAILS_TABLE
from .utils.time_utils import utc_now

logger = logging.getLogger(__name__)


class FailedStore:
    """Entries that could not be delivered, kept for inspection and manual retry"""

    def __init__(self, db, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def list_failed(self) -> List[FailedEmail]:
        rows = self.db.get_all(FAILED_EMAILS_TABLE, order_by="failed_at", desc=True)
        return [FailedEmail.from_row(row) for row in rows]

    def find(self, email_id: str) -> Optional[FailedEmail]:
        row = self.db.get_one(FAILED_EMAILS_TABLE, "id", email_id)
        return FailedEmail.from_row(row) if row else None

    def get(self, email_id: str) -> FailedEmail:
        failed = self.find(email_id)
        if failed is None:
            raise NotFoundError(f"Failed email {email_id} not found")
        return failed

    def record(self, entry: QueueEntry, error: str, template_name: Optional[str] = None,
               source: str = "queue") -> FailedEmail:
        existing = self.find(entry.id)
        retry_count = existing.retry_count + 1 if existing else entry.retry_count
        failed = FailedEmail(
            id=entry.id,
            recipient_email=entry.recipient_email,
            error_message=error,
            failed_at=self.clock(),
            retry_count=retry_count,
            metadata={
                "templateName": template_name,
                "templateId": entry.template_id,
                "senderEmail": entry.sender_email,
                "senderName": entry.sender_name,
                "credentialsRef": entry.credentials_ref,
                "recipientName": entry.recipient_name,
                "entryData": entry.entry_data,
                "source": source,
            },
        )
        self.db.upsert(FAILED_EMAILS_TABLE, failed.to_row())
        logger.error(f"Email {entry.id} to {entry.recipient_email} failed: {error}")
        return failed

    def delete(self, email_id: str) -> None:
        self.db.delete(FAILED_EMAILS_TABLE, email_id)

    def clear(self) -> int:
        removed = self.db.delete_all(FAILED_EMAILS_TABLE)
        return len(removed)
