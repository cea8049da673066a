# Location: queue_processor/__init__.py

from .email_processor import EmailProcessor, ProcessingSummary
from .counter_store import CounterStore, apply_reset, apply_block_expiry
from .stats_store import StatsStore
from .queue_store import QueueStore
from .scheduled_store import ScheduledStore
from .failed_store import FailedStore
from .template_store import TemplateStore
from .errors import (
    QueueProcessorError,
    ValidationError,
    NotFoundError,
    BlockedError,
    TransportError,
    PersistenceError
)

__all__ = [
    'EmailProcessor',
    'ProcessingSummary',
    'CounterStore',
    'apply_reset',
    'apply_block_expiry',
    'StatsStore',
    'QueueStore',
    'ScheduledStore',
    'FailedStore',
    'TemplateStore',
    'QueueProcessorError',
    'ValidationError',
    'NotFoundError',
    'BlockedError',
    'TransportError',
    'PersistenceError'
]

__version__ = '1.0.0'
