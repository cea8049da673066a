# filename: validation.py

from datetime import datetime
from typing import Any, Dict, List, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from ..errors import ValidationError
from ..models.email_records import SEND_MODES, SCHEDULED_MODE

REQUIRED_FIELDS = ['recipientEmail', 'templateId', 'senderEmail', 'sendMode']


class QueueEntryPayload(BaseModel):
    """Shape of one entry posted to the email queue"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    recipient_email: str = Field(..., alias="recipientEmail", min_length=1)
    recipient_name: Optional[str] = Field(None, alias="recipientName")
    template_id: str = Field(..., alias="templateId", min_length=1)
    sender_email: str = Field(..., alias="senderEmail", min_length=1)
    sender_name: Optional[str] = Field(None, alias="senderName")
    credentials_ref: Optional[str] = Field(None, alias="credentialsRef")
    send_mode: str = Field(..., alias="sendMode", min_length=1)
    scheduled_date: Optional[datetime] = Field(None, alias="scheduledDate")
    entry_data: Dict[str, Any] = Field(default_factory=dict, alias="entryData")


def missing_required_fields(entry: Dict[str, Any]) -> List[str]:
    return [name for name in REQUIRED_FIELDS if not entry.get(name)]


def validate_queue_entry(entry: Any) -> QueueEntryPayload:
    """
    Validate one enqueue payload.
    Raises ValidationError naming the offending fields.
    """
    if not isinstance(entry, dict):
        raise ValidationError("Queue entry must be a JSON object")

    # Numeric ids/templates coming from the UI are accepted as strings
    entry = {k: (str(v) if k in ('id', 'templateId') and isinstance(v, int) else v)
             for k, v in entry.items()}

    missing = missing_required_fields(entry)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    try:
        payload = QueueEntryPayload.model_validate(entry)
    except pydantic.ValidationError as e:
        fields = [str(err['loc'][0]) for err in e.errors() if err.get('loc')]
        raise ValidationError(f"Invalid queue entry: {', '.join(fields)}", fields=fields) from e

    if payload.send_mode not in SEND_MODES:
        raise ValidationError(
            f"Invalid send mode: {payload.send_mode}", fields=['sendMode']
        )
    if payload.send_mode == SCHEDULED_MODE and payload.scheduled_date is None:
        raise ValidationError("Scheduled entries need a scheduledDate", fields=['scheduledDate'])
    if payload.send_mode != SCHEDULED_MODE and payload.scheduled_date is not None:
        raise ValidationError("Only scheduled entries take a scheduledDate", fields=['scheduledDate'])

    return payload
