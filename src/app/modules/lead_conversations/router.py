"""
Lead Conversations Router

CRM endpoints for the admin users screen.

Endpoints:
- GET /leadConversations - All conversations, most recently updated first
- GET /leadConversations/reminders/today - Open reminders due today (UTC)
- GET /leadConversations/{userId} - One user's conversation
- PUT /leadConversations/{userId} - Create or update a user's conversation
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ServiceError, handle_service_error, internal_error
from app.modules.lead_conversations import service
from app.modules.lead_conversations.schemas import (
    LeadConversationResponse,
    LeadConversationUpsert,
    TodayRemindersResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=list[LeadConversationResponse],
    summary="List Lead Conversations",
)
async def list_conversations(db: AsyncSession = Depends(get_db)) -> list[LeadConversationResponse]:
    try:
        return await service.list_conversations(db)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing lead conversations: {e}")
        raise internal_error() from e


@router.get(
    "/reminders/today",
    response_model=TodayRemindersResponse,
    summary="Today's Reminders",
    description=(
        "Conversations with an open reminder on the current UTC date, earliest first (max 50)."
    ),
)
async def get_today_reminders(db: AsyncSession = Depends(get_db)) -> TodayRemindersResponse:
    try:
        return await service.get_today_reminders(db)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading today's reminders: {e}")
        raise internal_error() from e


@router.get(
    "/{user_id}",
    response_model=LeadConversationResponse,
    summary="Get Lead Conversation",
    responses={
        400: {"description": "Invalid user id"},
        404: {"description": "Lead conversation not found"},
    },
)
async def get_conversation(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> LeadConversationResponse:
    try:
        return await service.get_conversation(db, user_id)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading lead conversation for user {user_id}: {e}")
        raise internal_error() from e


@router.put(
    "/{user_id}",
    response_model=LeadConversationResponse,
    summary="Upsert Lead Conversation",
    description="""
Create the user's conversation on first call, overwrite it afterwards.

- `conversationStatus`: one of `new`, `contacted`, `follow_up`, `interested`,
  `not_interested`, `closed`; anything else is stored as `new`
- `lookingFor`, `notes`: empty string clears the field
- `reminderAt`, `lastContactedAt`: ISO 8601; null or empty clears the field
""",
    responses={
        400: {"description": "Invalid user id or datetime format"},
        404: {"description": "User not found"},
    },
)
async def upsert_conversation(
    user_id: str,
    data: LeadConversationUpsert,
    db: AsyncSession = Depends(get_db),
) -> LeadConversationResponse:
    try:
        return await service.upsert_conversation(db, user_id, data)
    except ServiceError as e:
        logger.warning(f"Lead conversation update rejected for user {user_id}: {e.message}")
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error saving lead conversation for user {user_id}: {e}")
        raise internal_error() from e
