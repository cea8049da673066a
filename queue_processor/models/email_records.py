# filename: email_records.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils.time_utils import format_datetime, parse_datetime

# Queue entry statuses
PENDING = "pending"
SENT = "sent"
PROCESSED = "processed"
SCHEDULED = "scheduled"
FAILED = "failed"

TERMINAL_STATUSES = (SENT, PROCESSED, FAILED)

# Send modes
IMMEDIATE = "immediate"
SCHEDULED_MODE = "scheduled"
SEND_MODES = (IMMEDIATE, SCHEDULED_MODE)

MAX_RETRIES = 3


@dataclass
class QueueEntry:
    """One requested send"""
    id: str
    recipient_email: str
    template_id: str
    sender_email: str
    send_mode: str = IMMEDIATE
    recipient_name: Optional[str] = None
    sender_name: Optional[str] = None
    credentials_ref: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    entry_data: Dict[str, Any] = field(default_factory=dict)
    status: Optional[str] = PENDING
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    retry_count: int = 0

    @property
    def is_pending(self) -> bool:
        return self.status in (None, "", PENDING)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "QueueEntry":
        return cls(
            id=str(row["id"]),
            recipient_email=row.get("recipient_email"),
            recipient_name=row.get("recipient_name"),
            template_id=row.get("template_id"),
            sender_email=row.get("sender_email"),
            sender_name=row.get("sender_name"),
            credentials_ref=row.get("credentials_ref"),
            send_mode=row.get("send_mode") or IMMEDIATE,
            scheduled_date=parse_datetime(row.get("scheduled_date")),
            entry_data=row.get("entry_data") or {},
            status=row.get("status"),
            created_at=parse_datetime(row.get("created_at")),
            processed_at=parse_datetime(row.get("processed_at")),
            error_message=row.get("error_message"),
            retry_count=row.get("retry_count") or 0,
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "recipient_email": self.recipient_email,
            "recipient_name": self.recipient_name,
            "template_id": self.template_id,
            "sender_email": self.sender_email,
            "sender_name": self.sender_name,
            "credentials_ref": self.credentials_ref,
            "send_mode": self.send_mode,
            "scheduled_date": format_datetime(self.scheduled_date),
            "entry_data": self.entry_data,
            "status": self.status,
            "created_at": format_datetime(self.created_at),
            "processed_at": format_datetime(self.processed_at),
            "error_message": self.error_message,
            "retry_count": self.retry_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "recipientEmail": self.recipient_email,
            "recipientName": self.recipient_name,
            "templateId": self.template_id,
            "senderEmail": self.sender_email,
            "senderName": self.sender_name,
            "sendMode": self.send_mode,
            "scheduledDate": format_datetime(self.scheduled_date),
            "entryData": self.entry_data,
            "status": self.status,
            "createdAt": format_datetime(self.created_at),
            "processedAt": format_datetime(self.processed_at),
            "errorMessage": self.error_message,
            "retryCount": self.retry_count,
        }


@dataclass
class ScheduledEmail:
    """A deferred send keyed by its fire time. `email_data` holds the queue entry row."""
    id: str
    email_data: Dict[str, Any]
    scheduled_date: Optional[datetime]
    status: str = SCHEDULED
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    def is_due(self, now: datetime) -> bool:
        # rows without a date never fire
        return self.scheduled_date is not None and now >= self.scheduled_date

    def to_queue_entry(self) -> QueueEntry:
        row = dict(self.email_data)
        row.setdefault("id", self.id)
        entry = QueueEntry.from_row(row)
        entry.send_mode = SCHEDULED_MODE
        entry.scheduled_date = self.scheduled_date
        return entry

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ScheduledEmail":
        return cls(
            id=str(row["id"]),
            email_data=row.get("email_data") or {},
            scheduled_date=parse_datetime(row.get("scheduled_date")),
            status=row.get("status") or SCHEDULED,
            created_at=parse_datetime(row.get("created_at")),
            processed_at=parse_datetime(row.get("processed_at")),
            error_message=row.get("error_message"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email_data": self.email_data,
            "scheduled_date": format_datetime(self.scheduled_date),
            "status": self.status,
            "created_at": format_datetime(self.created_at),
            "processed_at": format_datetime(self.processed_at),
            "error_message": self.error_message,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "emailData": self.email_data,
            "scheduledDate": format_datetime(self.scheduled_date),
            "status": self.status,
            "createdAt": format_datetime(self.created_at),
            "processedAt": format_datetime(self.processed_at),
            "errorMessage": self.error_message,
        }


@dataclass
class EmailCounter:
    """Per-sender daily usage ledger"""
    sender_id: str
    daily_limit: int
    direct_send_count: int = 0
    scheduled_send_count: int = 0
    total_count: int = 0
    last_reset_at: Optional[datetime] = None
    is_blocked: bool = False
    blocked_until: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "EmailCounter":
        direct = row.get("direct_send_count") or 0
        scheduled = row.get("scheduled_send_count") or 0
        return cls(
            sender_id=row["sender_id"],
            daily_limit=row.get("daily_limit") or 0,
            direct_send_count=direct,
            scheduled_send_count=scheduled,
            total_count=direct + scheduled,
            last_reset_at=parse_datetime(row.get("last_reset_at")),
            is_blocked=bool(row.get("is_blocked")),
            blocked_until=parse_datetime(row.get("blocked_until")),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "sender_id": self.sender_id,
            "daily_limit": self.daily_limit,
            "direct_send_count": self.direct_send_count,
            "scheduled_send_count": self.scheduled_send_count,
            "total_count": self.direct_send_count + self.scheduled_send_count,
            "last_reset_at": format_datetime(self.last_reset_at),
            "is_blocked": self.is_blocked,
            "blocked_until": format_datetime(self.blocked_until),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emailId": self.sender_id,
            "dailyLimit": self.daily_limit,
            "directSendCount": self.direct_send_count,
            "scheduledSendCount": self.scheduled_send_count,
            "totalCount": self.total_count,
            "lastResetAt": format_datetime(self.last_reset_at),
            "isBlocked": self.is_blocked,
            "blockedUntil": format_datetime(self.blocked_until),
        }


@dataclass
class ProcessingStats:
    total_processed: int = 0
    total_failed: int = 0
    session_processed: int = 0
    session_failed: int = 0
    last_processing_time: Optional[datetime] = None
    id: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ProcessingStats":
        return cls(
            id=row.get("id"),
            total_processed=row.get("total_processed") or 0,
            total_failed=row.get("total_failed") or 0,
            session_processed=row.get("session_processed") or 0,
            session_failed=row.get("session_failed") or 0,
            last_processing_time=parse_datetime(row.get("last_processing_time")),
            created_at=parse_datetime(row.get("created_at")),
            updated_at=parse_datetime(row.get("updated_at")),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "total_processed": self.total_processed,
            "total_failed": self.total_failed,
            "session_processed": self.session_processed,
            "session_failed": self.session_failed,
            "last_processing_time": format_datetime(self.last_processing_time),
            "updated_at": format_datetime(self.updated_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProcessed": self.total_processed,
            "totalFailed": self.total_failed,
            "sessionProcessed": self.session_processed,
            "sessionFailed": self.session_failed,
            "lastProcessingTime": format_datetime(self.last_processing_time),
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
        }


@dataclass
class FailedEmail:
    """Terminal record of a send that could not complete"""
    id: str
    recipient_email: str
    error_message: str
    failed_at: datetime
    retry_count: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def can_retry(self) -> bool:
        return self.retry_count < MAX_RETRIES

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FailedEmail":
        return cls(
            id=str(row["id"]),
            recipient_email=row.get("recipient_email"),
            error_message=row.get("error_message") or "",
            failed_at=parse_datetime(row.get("failed_at")),
            retry_count=row.get("retry_count") or 0,
            metadata=row.get("metadata") or {},
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "recipient_email": self.recipient_email,
            "error_message": self.error_message,
            "failed_at": format_datetime(self.failed_at),
            "retry_count": self.retry_count,
            "metadata": self.metadata,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "recipientEmail": self.recipient_email,
            "error": self.error_message,
            "failedAt": format_datetime(self.failed_at),
            "retryCount": self.retry_count,
            "metadata": self.metadata,
            "canRetry": self.can_retry,
        }


@dataclass
class EmailTemplate:
    id: str
    name: str
    subject: str
    body: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "EmailTemplate":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            subject=row.get("subject") or "",
            body=row.get("body") or "",
        )
