# Location: queue_processor/models/__init__.py

from .email_records import (
    QueueEntry,
    ScheduledEmail,
    EmailCounter,
    ProcessingStats,
    FailedEmail,
    EmailTemplate,
    MAX_RETRIES
)

__all__ = [
    'QueueEntry',
    'ScheduledEmail',
    'EmailCounter',
    'ProcessingStats',
    'FailedEmail',
    'EmailTemplate',
    'MAX_RETRIES'
]
