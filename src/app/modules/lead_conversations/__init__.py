"""
Lead Conversations Module

One CRM record per user (status, notes, follow-up reminder), independent of
applications.

API Endpoints:
- GET /leadConversations
- GET /leadConversations/reminders/today
- GET /leadConversations/{userId}
- PUT /leadConversations/{userId}
"""

from .router import router

__all__ = ["router"]
