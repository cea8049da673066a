# filename: stats_store.py

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from .models.email_records import ProcessingStats
from .tables import PROCESSING_STATS_TABLE
from .utils.time_utils import utc_now

logger = logging.getLogger(__name__)

STAT_FIELDS = ("total_processed", "total_failed", "session_processed", "session_failed")


class StatsStore:
    """
    Running processing totals. Only the most recently created row is consulted,
    it is created on the first write.
    """

    def __init__(self, db, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def _latest_row(self) -> Optional[dict]:
        rows = self.db.get_all(PROCESSING_STATS_TABLE, order_by="created_at", desc=True, limit=1)
        return rows[0] if rows else None

    def get_current(self) -> ProcessingStats:
        row = self._latest_row()
        return ProcessingStats.from_row(row) if row else ProcessingStats()

    def _save(self, stats: ProcessingStats) -> ProcessingStats:
        now = self.clock()
        stats = replace(stats, updated_at=now)
        row = stats.to_row()
        if stats.id is not None:
            self.db.update(PROCESSING_STATS_TABLE, stats.id, row)
            return stats
        row["created_at"] = now.isoformat()
        inserted = self.db.post(PROCESSING_STATS_TABLE, row)
        stats = replace(stats, created_at=now)
        if inserted and inserted[0].get("id") is not None:
            stats = replace(stats, id=inserted[0]["id"])
        return stats

    def accumulate(self, processed: int = 0, failed: int = 0) -> ProcessingStats:
        current = self.get_current()
        stats = replace(
            current,
            total_processed=current.total_processed + processed,
            total_failed=current.total_failed + failed,
            session_processed=current.session_processed + processed,
            session_failed=current.session_failed + failed,
            last_processing_time=self.clock(),
        )
        logger.info(f"Processing stats: +{processed} processed, +{failed} failed "
                    f"(total {stats.total_processed}/{stats.total_failed})")
        return self._save(stats)

    def reset_session(self) -> ProcessingStats:
        stats = replace(
            self.get_current(),
            session_processed=0,
            session_failed=0,
            last_processing_time=self.clock(),
        )
        return self._save(stats)

    def reset_all(self) -> ProcessingStats:
        stats = replace(
            self.get_current(),
            total_processed=0,
            total_failed=0,
            session_processed=0,
            session_failed=0,
            last_processing_time=None,
        )
        logger.warning("Processing stats reset to zero")
        return self._save(stats)

    def overwrite(self, **fields) -> ProcessingStats:
        """Set the given counters (and optionally last_processing_time); others keep their value"""
        changes = {name: int(value) for name, value in fields.items()
                   if name in STAT_FIELDS and value is not None}
        if fields.get("last_processing_time") is not None:
            changes["last_processing_time"] = fields["last_processing_time"]
        return self._save(replace(self.get_current(), **changes))
