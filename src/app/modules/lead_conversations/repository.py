"""
Lead Conversation Repository

Reads join the conversation with the lead's contact fields; writes are a
single INSERT ... ON CONFLICT (user_id) DO UPDATE.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.lead_conversations.models import LeadConversation
from app.modules.users.models import User

REMINDERS_LIMIT = 50

UPSERT_FIELDS = (
    "looking_for",
    "conversation_status",
    "notes",
    "reminder_at",
    "reminder_done",
    "last_contacted_at",
)


def _with_user() -> Select:
    return select(
        LeadConversation.id,
        LeadConversation.user_id,
        LeadConversation.looking_for,
        LeadConversation.conversation_status,
        LeadConversation.notes,
        LeadConversation.reminder_at,
        LeadConversation.reminder_done,
        LeadConversation.last_contacted_at,
        LeadConversation.created_at,
        LeadConversation.updated_at,
        User.name.label("user_name"),
        User.email.label("user_email"),
        User.phone.label("user_phone"),
        User.city.label("user_city"),
    ).join(User, User.id == LeadConversation.user_id)


async def list_all(db: AsyncSession) -> list[RowMapping]:
    """All conversations, most recently updated first."""
    result = await db.execute(
        _with_user().order_by(LeadConversation.updated_at.desc(), LeadConversation.id.desc())
    )
    return list(result.mappings().all())


async def get_by_user_id(db: AsyncSession, user_id: int) -> RowMapping | None:
    result = await db.execute(_with_user().where(LeadConversation.user_id == user_id).limit(1))
    return result.mappings().first()


async def upsert(db: AsyncSession, user_id: int, values: dict[str, Any]) -> None:
    """
    Create the user's conversation or overwrite its fields.

    ``updated_at`` is refreshed on every update.
    """
    stmt = insert(LeadConversation).values(user_id=user_id, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[LeadConversation.user_id],
        set_={
            **{field: getattr(stmt.excluded, field) for field in UPSERT_FIELDS},
            "updated_at": func.now(),
        },
    )
    await db.execute(stmt)
    await db.commit()


async def get_open_reminders_between(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    limit: int = REMINDERS_LIMIT,
) -> list[RowMapping]:
    """Open reminders with ``start <= reminder_at < end``, earliest first."""
    result = await db.execute(
        _with_user()
        .where(
            LeadConversation.reminder_done.is_(False),
            LeadConversation.reminder_at >= start,
            LeadConversation.reminder_at < end,
        )
        .order_by(LeadConversation.reminder_at.asc(), LeadConversation.id.asc())
        .limit(limit)
    )
    return list(result.mappings().all())
