from fastapi import APIRouter

from app.modules.applications import admin_router as applications_admin_router
from app.modules.applications import router as applications_router
from app.modules.lead_conversations import router as lead_conversations_router

api_router = APIRouter()

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    applications_admin_router,
    prefix="/applications",
    tags=["Applications - Employee Tasks"],
)

api_router.include_router(
    lead_conversations_router, prefix="/leadConversations", tags=["Lead Conversations"]
)
