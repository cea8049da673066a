from typing import List, Optional


class QueueProcessorError(Exception):
    """Base class for errors raised by the queue processor"""


class ValidationError(QueueProcessorError):
    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class NotFoundError(QueueProcessorError):
    pass


class BlockedError(QueueProcessorError):
    """Sender is over its daily direct-send limit"""

    def __init__(self, sender_id: str, blocked_until=None):
        super().__init__("sender blocked")
        self.sender_id = sender_id
        self.blocked_until = blocked_until


class TransportError(QueueProcessorError):
    """Delivery attempt failed (auth, network, invalid recipient)"""


class PersistenceError(QueueProcessorError):
    """Store unreachable or constraint violation"""
