"""Support domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class TicketCreate(BaseModel):
    subject: str
    message: str

    @field_validator("subject", "message")
    @classmethod
    def validate_text(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Subject and message are required")
        return v


class TicketStatusUpdate(BaseModel):
    status: str


class TicketPriorityUpdate(BaseModel):
    priority: str


class TicketResponseUpdate(BaseModel):
    admin_response: str

    @field_validator("admin_response")
    @classmethod
    def validate_response(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Admin response is required")
        return v


class TicketResponse(BaseModel):
    id: int
    user_id: int
    subject: str
    message: str
    status: str
    priority: str
    admin_response: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminTicketResponse(TicketResponse):
    admin_id: Optional[int] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None


class TicketStats(BaseModel):
    total_tickets: int = 0
    open_tickets: int = 0
    in_progress_tickets: int = 0
    resolved_tickets: int = 0
    closed_tickets: int = 0
    high_priority_tickets: int = 0
    medium_priority_tickets: int = 0
    low_priority_tickets: int = 0
