"""
Task Aging Classification

Buckets an open task by how long it has gone without an update:

- on_time:  less than 24 hours
- aging:    24 hours up to (not including) 6 days
- critical: 6 days or more

Completed tasks have no bucket. The same boundaries drive the per-task
listing and the SQL aggregation in the analytics endpoint, via
``aging_thresholds``.
"""

import enum
from datetime import UTC, datetime, timedelta

from app.core.validators import ensure_utc
from app.modules.applications.models import TaskStatus

ON_TIME_WINDOW = timedelta(hours=24)
CRITICAL_AFTER = timedelta(days=6)


class TaskAgingStatus(str, enum.Enum):
    ON_TIME = "on_time"
    AGING = "aging"
    CRITICAL = "critical"


def classify_elapsed(elapsed: timedelta) -> TaskAgingStatus:
    """Map time since the last update to a bucket."""
    if elapsed < ON_TIME_WINDOW:
        return TaskAgingStatus.ON_TIME
    if elapsed < CRITICAL_AFTER:
        return TaskAgingStatus.AGING
    return TaskAgingStatus.CRITICAL


def classify_task_aging(
    task_status: TaskStatus | str | None,
    task_updated_at: datetime | None,
    application_created_at: datetime | None,
    now: datetime | None = None,
) -> TaskAgingStatus | None:
    """
    Classify a task's aging bucket.

    Args:
        task_status: Task status; a missing task row counts as under_process
        task_updated_at: Last task update, if a task row exists
        application_created_at: Fallback reference when there is no task row
        now: Evaluation time (defaults to current UTC time)

    Returns:
        The bucket, or None when the task is not under_process or there is
        no reference timestamp at all
    """
    status = TaskStatus(task_status) if task_status is not None else TaskStatus.UNDER_PROCESS
    if status != TaskStatus.UNDER_PROCESS:
        return None

    reference = task_updated_at or application_created_at
    if reference is None:
        return None

    current = ensure_utc(now) if now is not None else datetime.now(UTC)
    return classify_elapsed(current - ensure_utc(reference))


def aging_thresholds(now: datetime) -> tuple[datetime, datetime]:
    """
    Cut-off instants equivalent to ``classify_elapsed`` for SQL filters.

    A task updated at ``t`` is on_time when ``t > on_time_after``, aging when
    ``critical_at_or_before < t <= on_time_after``, and critical when
    ``t <= critical_at_or_before``.

    Returns:
        (on_time_after, critical_at_or_before)
    """
    current = ensure_utc(now)
    return current - ON_TIME_WINDOW, current - CRITICAL_AFTER
