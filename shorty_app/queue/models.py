"""
Data models for queue messages.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClickEvent(BaseModel):
    """
    Event published when a short URL redirects successfully.

    The click worker turns these into `clicks` increments.
    """

    short_code: str = Field(..., description="The short code that was followed")
    timestamp: datetime = Field(default_factory=_utcnow, description="When the redirect happened")

    # Set by backends that need acknowledgment (Redis Streams)
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "short_code": "aB3xY9",
                "timestamp": "2025-10-29T10:30:00Z",
            }
        }
    )
