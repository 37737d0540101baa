"""
Lead Conversation Schemas

camelCase JSON for the admin CRM screens.
"""

from datetime import datetime
from typing import Any

from app.modules.shared.schemas import CamelModel


class LeadConversationUpsert(CamelModel):
    """
    Request body for PUT /leadConversations/{userId}.

    Every field is optional and loosely typed; the service coerces the
    status, blanks and datetimes.
    """

    looking_for: str | None = None
    conversation_status: Any = None
    notes: str | None = None
    reminder_at: Any = None
    reminder_done: Any = None
    last_contacted_at: Any = None


class LeadUser(CamelModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    city: str | None = None


class LeadConversationResponse(CamelModel):
    """Stored conversation joined with the lead's contact details."""

    id: int
    user_id: int
    looking_for: str | None = None
    conversation_status: str
    notes: str | None = None
    reminder_at: datetime | None = None
    reminder_done: bool
    last_contacted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    user: LeadUser | None = None


class TodayReminder(CamelModel):
    """Flat reminder row for the dashboard."""

    id: int
    user_id: int
    user_name: str
    user_email: str | None = None
    user_phone: str | None = None
    conversation_status: str
    looking_for: str | None = None
    notes: str | None = None
    reminder_at: datetime


class TodayRemindersResponse(CamelModel):
    """Open reminders due on the current UTC day."""

    todays_reminders_count: int
    todays_reminders: list[TodayReminder]
