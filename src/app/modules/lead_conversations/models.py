"""
Lead Conversation Models

One CRM record per user, used by staff to track sales-style follow-up.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class ConversationStatus:
    """Allowed values of ``lead_conversations.conversation_status``."""

    NEW = "new"
    CONTACTED = "contacted"
    FOLLOW_UP = "follow_up"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    CLOSED = "closed"

    ALL = (NEW, CONTACTED, FOLLOW_UP, INTERESTED, NOT_INTERESTED, CLOSED)


class LeadConversation(BaseModel):
    """
    Follow-up state for a lead.

    Created implicitly by the first upsert for a user and updated in place
    afterwards. ``user_id`` is unique.
    """

    __tablename__ = "lead_conversations"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    looking_for: Mapped[str | None] = mapped_column(Text, nullable=True)
    conversation_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ConversationStatus.NEW
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reminder_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reminder_done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_contacted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_lead_conversations_updated_at", "updated_at"),
        Index("ix_lead_conversations_reminder_at", "reminder_at"),
    )

    def __repr__(self) -> str:
        return f"<LeadConversation {self.user_id}: {self.conversation_status}>"
