# filename: scheduled_store.py

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .models.email_records import SCHEDULED, QueueEntry, ScheduledEmail
from .tables import SCHEDULED_EMAILS_TABLE
from .utils.time_utils import format_datetime, utc_now

logger = logging.getLogger(__name__)


class ScheduledStore:
    def __init__(self, db, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def list_emails(self) -> List[ScheduledEmail]:
        rows = self.db.get_all(SCHEDULED_EMAILS_TABLE, order_by="scheduled_date")
        return [ScheduledEmail.from_row(row) for row in rows]

    def split_by_due(self, now: Optional[datetime] = None) -> Tuple[List[ScheduledEmail], List[ScheduledEmail]]:
        """(upcoming, overdue) over every scheduled email row"""
        now = now or self.clock()
        upcoming, overdue = [], []
        for email in self.list_emails():
            (overdue if email.is_due(now) else upcoming).append(email)
        return upcoming, overdue

    def list_due(self, now: Optional[datetime] = None) -> List[ScheduledEmail]:
        """Emails still waiting with a fire time at or before now"""
        now = now or self.clock()
        rows = self.db.get_all(SCHEDULED_EMAILS_TABLE, filters={"status": SCHEDULED},
                               order_by="scheduled_date")
        emails = [ScheduledEmail.from_row(row) for row in rows]
        return [email for email in emails if email.is_due(now)]

    def schedule(self, entry: QueueEntry) -> ScheduledEmail:
        """Defer a queue entry until its scheduled date"""
        email = ScheduledEmail(
            id=entry.id,
            email_data=entry.to_row(),
            scheduled_date=entry.scheduled_date,
            status=SCHEDULED,
            created_at=self.clock(),
        )
        self.db.upsert(SCHEDULED_EMAILS_TABLE, email.to_row())
        logger.info(f"Email {entry.id} scheduled for {format_datetime(entry.scheduled_date)}")
        return email

    def mark(self, email_id: str, status: str, error: Optional[str] = None) -> None:
        self.db.update(SCHEDULED_EMAILS_TABLE, email_id, {
            "status": status,
            "processed_at": format_datetime(self.clock()),
            "error_message": error,
        })
