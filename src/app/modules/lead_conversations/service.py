"""
Lead Conversation Service Layer

Coerces the loosely typed CRM form input and shapes rows for the admin
screens. Conversations are independent of applications and keyed only by
user id.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ServiceError, ValidationError
from app.core.validators import parse_datetime, parse_positive_int
from app.modules.lead_conversations import repository
from app.modules.lead_conversations.models import ConversationStatus
from app.modules.lead_conversations.schemas import (
    LeadConversationResponse,
    LeadConversationUpsert,
    LeadUser,
    TodayReminder,
    TodayRemindersResponse,
)
from app.modules.users.exceptions import UserNotFoundError
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class InvalidUserIdError(ValidationError):
    def __init__(self):
        super().__init__(message="Invalid user id", error_code="INVALID_USER_ID")


class InvalidDateTimeError(ValidationError):
    def __init__(self):
        super().__init__(
            message="Invalid reminderAt or lastContactedAt datetime format",
            error_code="INVALID_DATETIME",
        )


class LeadConversationNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__(
            message="Lead conversation not found", error_code="LEAD_CONVERSATION_NOT_FOUND"
        )


class LeadConversationSaveError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Failed to save lead conversation",
            error_code="LEAD_CONVERSATION_SAVE_FAILED",
            status_code=500,
        )


def normalize_status(value: object) -> str:
    """
    Coerce a conversation status to an allowed value.

    Matching is case-insensitive after trimming; anything unrecognized,
    including missing values, becomes "new".
    """
    text = str(value or "").strip().lower()
    if text in ConversationStatus.ALL:
        return text
    return ConversationStatus.NEW


def _empty_to_none(value: str | None) -> str | None:
    return None if value == "" else value


def _to_response(row: RowMapping) -> LeadConversationResponse:
    values = dict(row)
    user = LeadUser(
        name=values.pop("user_name", None),
        email=values.pop("user_email", None),
        phone=values.pop("user_phone", None),
        city=values.pop("user_city", None),
    )
    values["reminder_done"] = bool(values.get("reminder_done"))
    values["user"] = user if user.name else None
    return LeadConversationResponse.model_validate(values)


def _to_reminder(row: RowMapping) -> TodayReminder:
    return TodayReminder(
        id=row["id"],
        user_id=row["user_id"],
        user_name=row["user_name"] or "",
        user_email=row["user_email"],
        user_phone=row["user_phone"],
        conversation_status=row["conversation_status"],
        looking_for=row["looking_for"],
        notes=row["notes"],
        reminder_at=row["reminder_at"],
    )


def _require_user_id(value: object) -> int:
    user_id = parse_positive_int(value)
    if user_id is None:
        raise InvalidUserIdError()
    return user_id


async def list_conversations(db: AsyncSession) -> list[LeadConversationResponse]:
    rows = await repository.list_all(db)
    return [_to_response(row) for row in rows]


async def get_conversation(db: AsyncSession, user_id: object) -> LeadConversationResponse:
    """
    Raises:
        InvalidUserIdError: If user_id is not a positive integer
        LeadConversationNotFoundError: If the user has no conversation
    """
    lead_user_id = _require_user_id(user_id)
    row = await repository.get_by_user_id(db, lead_user_id)
    if row is None:
        raise LeadConversationNotFoundError()
    return _to_response(row)


async def upsert_conversation(
    db: AsyncSession,
    user_id: object,
    data: LeadConversationUpsert,
) -> LeadConversationResponse:
    """
    Create or update a user's conversation.

    Coercion rules:
    - ``lookingFor`` and ``notes``: empty string becomes null
    - ``conversationStatus``: allowlisted, otherwise "new"
    - ``reminderDone``: truthiness
    - ``reminderAt`` / ``lastContactedAt``: ISO datetimes; null or empty
      clears the field

    Raises:
        InvalidUserIdError: If user_id is not a positive integer
        UserNotFoundError: If the user does not exist
        InvalidDateTimeError: If a provided datetime does not parse
    """
    lead_user_id = _require_user_id(user_id)

    if not await UserRepository.exists(db, lead_user_id):
        raise UserNotFoundError()

    try:
        reminder_at = parse_datetime(data.reminder_at)
        last_contacted_at = parse_datetime(data.last_contacted_at)
    except ValueError as e:
        raise InvalidDateTimeError() from e

    conversation_status = normalize_status(data.conversation_status)
    await repository.upsert(
        db,
        lead_user_id,
        {
            "looking_for": _empty_to_none(data.looking_for),
            "conversation_status": conversation_status,
            "notes": _empty_to_none(data.notes),
            "reminder_at": reminder_at,
            "reminder_done": bool(data.reminder_done),
            "last_contacted_at": last_contacted_at,
        },
    )
    logger.info(f"Lead conversation saved for user {lead_user_id}: status={conversation_status}")

    row = await repository.get_by_user_id(db, lead_user_id)
    if row is None:
        raise LeadConversationSaveError()
    return _to_response(row)


async def get_today_reminders(
    db: AsyncSession, now: datetime | None = None
) -> TodayRemindersResponse:
    """Open reminders falling on the current UTC date, earliest first."""
    current = (now or datetime.now(UTC)).astimezone(UTC)
    start = current.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)

    rows = await repository.get_open_reminders_between(db, start, end)
    reminders = [_to_reminder(row) for row in rows]
    return TodayRemindersResponse(
        todays_reminders_count=len(reminders), todays_reminders=reminders
    )
