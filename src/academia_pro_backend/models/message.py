'''
Pydantic models for the per-order messaging panel.
'''
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    message_text: str = Field(..., max_length=5000)


class MessageRead(BaseModel):
    id: UUID
    order_id: UUID
    sender_id: UUID
    receiver_id: UUID
    message_text: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    unread: int
