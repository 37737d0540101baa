"""
Applications Module

Handles student program applications and the employee task workflow:
1. Application intake with duplicate detection per program + email/user
2. Task fan-out to employees granted the application's country
3. Employee task listing with aging classification
4. Task status/notes updates (atomic upsert)
5. Task analytics for the admin dashboard

API Endpoints:
- POST /applications - Submit an application
- GET /applications - Latest applications (admin)
- GET /applications/employee-tasks?userId= - Employee task list
- PUT /applications/employee-tasks/{applicationId} - Update a task
- GET /applications/task-analytics - Workload and aging summary

Aging buckets (open tasks only):
- on_time: updated within 24 hours
- aging: 24 hours to under 6 days
- critical: 6 days or more
"""

from .admin_router import router as admin_router
from .router import router

__all__ = ["router", "admin_router"]
