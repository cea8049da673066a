# filename: counter_store.py

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterable, List

from .errors import BlockedError, NotFoundError
from .models.email_records import EmailCounter
from .tables import EMAIL_COUNTERS_TABLE
from .utils.time_utils import DAY, has_elapsed, utc_now

logger = logging.getLogger(__name__)


def apply_reset(counter: EmailCounter, now: datetime) -> EmailCounter:
    """Start a new 24h window once the previous one has run out. Also lifts any block."""
    if not has_elapsed(counter.last_reset_at, now):
        return counter
    return replace(
        counter,
        direct_send_count=0,
        scheduled_send_count=0,
        total_count=0,
        last_reset_at=now,
        is_blocked=False,
        blocked_until=None,
    )


def apply_block_expiry(counter: EmailCounter, now: datetime) -> EmailCounter:
    if counter.blocked_until is None or now < counter.blocked_until:
        return counter
    return replace(counter, is_blocked=False, blocked_until=None)


def refresh(counter: EmailCounter, now: datetime) -> EmailCounter:
    # reset must run first, it clears blocks as well
    return apply_block_expiry(apply_reset(counter, now), now)


class CounterStore:
    """Per-sender daily send counters. Reset and block expiry are applied lazily on access."""

    def __init__(self, db, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def _load(self, sender_id: str) -> EmailCounter:
        row = self.db.get_one(EMAIL_COUNTERS_TABLE, "sender_id", sender_id)
        if not row:
            raise NotFoundError(f"Email counter not found for {sender_id}")
        return EmailCounter.from_row(row)

    def _save(self, counter: EmailCounter) -> EmailCounter:
        row = counter.to_row()
        row["updated_at"] = self.clock().isoformat()
        self.db.update(EMAIL_COUNTERS_TABLE, counter.sender_id, row, key="sender_id")
        return counter

    def get_counter(self, sender_id: str) -> EmailCounter:
        return self._load(sender_id)

    def list_counters(self) -> List[EmailCounter]:
        """All counters with reset/expiry applied; changed rows are written back"""
        now = self.clock()
        counters = []
        for row in self.db.get_all(EMAIL_COUNTERS_TABLE, order_by="sender_id"):
            counter = EmailCounter.from_row(row)
            refreshed = refresh(counter, now)
            if refreshed != counter:
                self._save(refreshed)
            counters.append(refreshed)
        return counters

    def record_send(self, sender_id: str, is_direct: bool = True) -> EmailCounter:
        """
        Attribute one send to a sender.
        Raises BlockedError (counts untouched) when a direct send hits a blocked sender.
        """
        now = self.clock()
        loaded = self._load(sender_id)
        counter = refresh(loaded, now)

        if is_direct and counter.is_blocked:
            if counter != loaded:
                self._save(counter)
            logger.warning(f"Sender {sender_id} is blocked until {counter.blocked_until}")
            raise BlockedError(sender_id, counter.blocked_until)

        if is_direct:
            counter = replace(counter, direct_send_count=counter.direct_send_count + 1)
        else:
            counter = replace(counter, scheduled_send_count=counter.scheduled_send_count + 1)
        counter = replace(counter, total_count=counter.direct_send_count + counter.scheduled_send_count)

        if is_direct and counter.direct_send_count >= counter.daily_limit:
            counter = replace(counter, is_blocked=True, blocked_until=now + DAY)
            logger.info(f"Sender {sender_id} reached its daily limit of {counter.daily_limit}, "
                        f"blocked until {counter.blocked_until.isoformat()}")

        return self._save(counter)

    def reset_counter(self, sender_id: str) -> EmailCounter:
        counter = self._load(sender_id)
        counter = replace(
            counter,
            direct_send_count=0,
            scheduled_send_count=0,
            total_count=0,
            last_reset_at=self.clock(),
            is_blocked=False,
            blocked_until=None,
        )
        return self._save(counter)

    def set_daily_limit(self, sender_id: str, daily_limit: int) -> EmailCounter:
        counter = replace(self._load(sender_id), daily_limit=int(daily_limit))
        return self._save(counter)

    def ensure_counters(self, senders: Iterable[Dict]) -> List[EmailCounter]:
        """Create a counter row for every configured sender that has none yet"""
        now = self.clock()
        created = []
        for sender in senders:
            if self.db.get_one(EMAIL_COUNTERS_TABLE, "sender_id", sender["email"]):
                continue
            counter = EmailCounter(
                sender_id=sender["email"],
                daily_limit=sender["daily_limit"],
                last_reset_at=now,
            )
            self.db.post(EMAIL_COUNTERS_TABLE, counter.to_row())
            logger.info(f"Created email counter for {sender['email']}")
            created.append(counter)
        return created
