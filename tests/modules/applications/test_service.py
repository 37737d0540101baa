"""
Unit tests for applications service layer.

These tests cover:
- Application submission (validation, duplicate detection, task fan-out)
- Employee task listing with aging buckets
- Task updates
- Task analytics
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import ValidationError
from app.modules.applications.aging import TaskAgingStatus
from app.modules.applications.models import TaskStatus
from app.modules.applications.schemas import ApplicationCreate, TaskUpdateRequest
from app.modules.applications.service import (
    ApplicationNotFoundError,
    CountryNotFoundError,
    InvalidTaskStatusError,
    MissingApplicationFieldsError,
    ProgramNotFoundError,
    get_task_analytics,
    list_employee_tasks,
    normalize_email,
    parse_task_status,
    submit_application,
    update_employee_task,
)
from app.modules.users.exceptions import UserNotFoundError

SERVICE = "app.modules.applications.service"


@pytest.fixture
def mock_repo():
    with patch(f"{SERVICE}.repository") as repo:
        repo.find_existing_id = AsyncMock(return_value=None)
        repo.insert_application = AsyncMock(return_value=41)
        repo.create_tasks = AsyncMock(return_value=0)
        repo.get_by_id = AsyncMock()
        repo.upsert_task = AsyncMock()
        repo.get_tasks_for_employee = AsyncMock(return_value=[])
        repo.get_employee_task_counts = AsyncMock(return_value=[])
        repo.get_country_task_counts = AsyncMock(return_value=[])
        repo.get_task_aging_totals = AsyncMock()
        yield repo


@pytest.fixture
def mock_users():
    with patch(f"{SERVICE}.UserRepository") as users:
        users.get_by_email = AsyncMock(return_value=None)
        users.exists = AsyncMock(return_value=True)
        users.get_employee_ids_for_country = AsyncMock(return_value=[])
        yield users


@pytest.fixture
def mock_catalog():
    with patch(f"{SERVICE}.catalog_repository") as catalog:
        catalog.get_program = AsyncMock(return_value=MagicMock(id=12, country_id=3))
        catalog.country_exists = AsyncMock(return_value=True)
        yield catalog


class TestHelpers:
    """Tests for small coercion helpers."""

    def test_normalize_email(self):
        assert normalize_email("  Foo.Bar@Example.COM ") == "foo.bar@example.com"

    def test_parse_task_status_accepts_allowed_values(self):
        assert parse_task_status("under_process") == TaskStatus.UNDER_PROCESS
        assert parse_task_status("completed") == TaskStatus.COMPLETED

    @pytest.mark.parametrize("value", ["Completed", "done", "", None, 1])
    def test_parse_task_status_rejects_other_values(self, value):
        with pytest.raises(InvalidTaskStatusError):
            parse_task_status(value)


class TestSubmitApplication:
    """Tests for submit_application function."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"applicant_name": "A", "email": "a@example.com"},
            {"program_id": 12, "email": "a@example.com"},
            {"program_id": 12, "applicant_name": "A"},
            {"program_id": "abc", "applicant_name": "A", "email": "a@example.com"},
            {"program_id": 12, "applicant_name": "   ", "email": "a@example.com"},
        ],
    )
    async def test_missing_required_fields_rejected_before_any_write(
        self, mock_db, mock_repo, mock_users, mock_catalog, payload
    ):
        with pytest.raises(MissingApplicationFieldsError) as exc_info:
            await submit_application(mock_db, ApplicationCreate(**payload))

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "programId, applicantName and email are required"
        mock_repo.find_existing_id.assert_not_called()
        mock_repo.insert_application.assert_not_called()
        mock_users.get_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_created_with_fan_out(
        self,
        mock_db,
        mock_repo,
        mock_users,
        mock_catalog,
        sample_application_create,
        sample_application_model,
    ):
        """A new application creates one task per employee granted the country."""
        mock_users.get_employee_ids_for_country.return_value = [5, 9]
        mock_repo.create_tasks.return_value = 2
        mock_repo.get_by_id.return_value = sample_application_model

        result = await submit_application(mock_db, sample_application_create)

        assert result.status == "created"
        assert result.application_id == 41
        assert result.application is sample_application_model

        mock_catalog.get_program.assert_awaited_once_with(mock_db, 12)
        mock_users.get_employee_ids_for_country.assert_awaited_once_with(mock_db, 3)
        mock_repo.create_tasks.assert_awaited_once_with(mock_db, 41, [5, 9])

        values = mock_repo.insert_application.call_args.args[1]
        assert values["email"] == "amina.bello@example.com"
        assert values["country_id"] == 3
        assert values["user_id"] is None
        assert values["status"] == "submitted"

    @pytest.mark.asyncio
    async def test_user_resolved_by_email(
        self,
        mock_db,
        mock_repo,
        mock_users,
        mock_catalog,
        sample_application_create,
        sample_application_model,
    ):
        mock_users.get_by_email.return_value = MagicMock(id=77)
        mock_repo.get_by_id.return_value = sample_application_model

        await submit_application(mock_db, sample_application_create)

        mock_users.get_by_email.assert_awaited_once_with(mock_db, "amina.bello@example.com")
        mock_repo.find_existing_id.assert_awaited_once_with(
            mock_db, 12, "amina.bello@example.com", 77
        )
        assert mock_repo.insert_application.call_args.args[1]["user_id"] == 77

    @pytest.mark.asyncio
    async def test_nested_ids_are_resolved(
        self, mock_db, mock_repo, mock_users, mock_catalog, sample_application_model
    ):
        """program and user may be nested objects; countryId overrides the program's."""
        mock_repo.get_by_id.return_value = sample_application_model
        data = ApplicationCreate.model_validate(
            {
                "program": {"id": "12", "programName": "MSc"},
                "user": {"id": 4},
                "countryId": "8",
                "applicantName": "Amina",
                "email": "amina@example.com",
            }
        )

        await submit_application(mock_db, data)

        mock_users.get_by_email.assert_not_called()
        mock_users.exists.assert_awaited_once_with(mock_db, 4)
        mock_catalog.country_exists.assert_awaited_once_with(mock_db, 8)
        values = mock_repo.insert_application.call_args.args[1]
        assert values["program_id"] == 12
        assert values["user_id"] == 4
        assert values["country_id"] == 8

    @pytest.mark.asyncio
    async def test_existing_application_short_circuits(
        self, mock_db, mock_repo, mock_users, mock_catalog, sample_application_create
    ):
        """A duplicate submission creates no row and no tasks."""
        mock_repo.find_existing_id.return_value = 17

        result = await submit_application(mock_db, sample_application_create)

        assert result.status == "exists"
        assert result.application_id == 17
        assert result.application is None
        mock_repo.insert_application.assert_not_called()
        mock_repo.create_tasks.assert_not_called()
        mock_users.get_employee_ids_for_country.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_insert_race_reports_exists(
        self, mock_db, mock_repo, mock_users, mock_catalog, sample_application_create
    ):
        mock_repo.find_existing_id.side_effect = [None, 18]
        mock_repo.insert_application.return_value = None

        result = await submit_application(mock_db, sample_application_create)

        assert result.status == "exists"
        assert result.application_id == 18
        mock_repo.create_tasks.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_country_skips_fan_out(
        self,
        mock_db,
        mock_repo,
        mock_users,
        mock_catalog,
        sample_application_create,
        sample_application_model,
    ):
        mock_catalog.get_program.return_value = MagicMock(id=12, country_id=None)
        mock_repo.get_by_id.return_value = sample_application_model

        result = await submit_application(mock_db, sample_application_create)

        assert result.status == "created"
        mock_users.get_employee_ids_for_country.assert_not_called()
        mock_repo.create_tasks.assert_not_called()

    @pytest.mark.asyncio
    async def test_fan_out_failure_keeps_application(
        self,
        mock_db,
        mock_repo,
        mock_users,
        mock_catalog,
        sample_application_create,
        sample_application_model,
    ):
        mock_users.get_employee_ids_for_country.return_value = [5]
        mock_repo.create_tasks.side_effect = SQLAlchemyError("deadlock detected")
        mock_repo.get_by_id.return_value = sample_application_model

        result = await submit_application(mock_db, sample_application_create)

        assert result.status == "created"
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_program_rejected_before_insert(
        self, mock_db, mock_repo, mock_users, mock_catalog, sample_application_create
    ):
        mock_catalog.get_program.return_value = None

        with pytest.raises(ProgramNotFoundError) as exc_info:
            await submit_application(mock_db, sample_application_create)

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Program not found"
        mock_repo.find_existing_id.assert_not_called()
        mock_repo.insert_application.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_user_rejected_before_insert(
        self, mock_db, mock_repo, mock_users, mock_catalog
    ):
        mock_users.exists.return_value = False
        data = ApplicationCreate(
            program_id=12, user_id=999, applicant_name="Amina", email="amina@example.com"
        )

        with pytest.raises(UserNotFoundError) as exc_info:
            await submit_application(mock_db, data)

        assert exc_info.value.status_code == 404
        mock_users.exists.assert_awaited_once_with(mock_db, 999)
        mock_users.get_by_email.assert_not_called()
        mock_repo.find_existing_id.assert_not_called()
        mock_repo.insert_application.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_country_rejected_before_insert(
        self, mock_db, mock_repo, mock_users, mock_catalog
    ):
        mock_catalog.country_exists.return_value = False
        data = ApplicationCreate(
            program_id=12, country_id=404, applicant_name="Amina", email="amina@example.com"
        )

        with pytest.raises(CountryNotFoundError) as exc_info:
            await submit_application(mock_db, data)

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Country not found"
        mock_repo.find_existing_id.assert_not_called()
        mock_repo.insert_application.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_match_skips_user_existence_check(
        self,
        mock_db,
        mock_repo,
        mock_users,
        mock_catalog,
        sample_application_create,
        sample_application_model,
    ):
        mock_repo.get_by_id.return_value = sample_application_model

        await submit_application(mock_db, sample_application_create)

        mock_users.exists.assert_not_called()
        mock_catalog.country_exists.assert_not_called()


class TestListEmployeeTasks:
    """Tests for list_employee_tasks function."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [None, "", "abc", "0", "-3"])
    async def test_invalid_user_id(self, mock_db, mock_repo, user_id):
        with pytest.raises(ValidationError) as exc_info:
            await list_employee_tasks(mock_db, user_id)

        assert exc_info.value.message == "Invalid userId"
        mock_repo.get_tasks_for_employee.assert_not_called()

    @pytest.mark.asyncio
    async def test_rows_are_classified(self, mock_db, mock_repo, make_task_row, now):
        mock_repo.get_tasks_for_employee.return_value = [
            # No task row yet: defaults to under_process, aged from created_at
            make_task_row(1, created_at=now - timedelta(hours=2)),
            make_task_row(
                2,
                task_status=TaskStatus.UNDER_PROCESS,
                task_updated_at=now - timedelta(days=3),
            ),
            make_task_row(
                3,
                task_status=TaskStatus.UNDER_PROCESS,
                task_updated_at=now - timedelta(days=6),
            ),
            make_task_row(
                4,
                task_status=TaskStatus.COMPLETED,
                task_updated_at=now - timedelta(days=30),
            ),
        ]

        tasks = await list_employee_tasks(mock_db, "5", now=now)

        mock_repo.get_tasks_for_employee.assert_awaited_once_with(mock_db, 5)
        assert [task.id for task in tasks] == [1, 2, 3, 4]
        assert tasks[0].task_status == TaskStatus.UNDER_PROCESS
        assert [task.task_aging_status for task in tasks] == [
            TaskAgingStatus.ON_TIME,
            TaskAgingStatus.AGING,
            TaskAgingStatus.CRITICAL,
            None,
        ]

    @pytest.mark.asyncio
    async def test_serializes_camel_case(self, mock_db, mock_repo, make_task_row, now):
        mock_repo.get_tasks_for_employee.return_value = [make_task_row()]

        tasks = await list_employee_tasks(mock_db, 5, now=now)
        body = tasks[0].model_dump(by_alias=True, mode="json")

        assert body["taskStatus"] == "under_process"
        assert body["taskAgingStatus"] == "on_time"
        assert body["countryName"] == "Canada"
        assert body["taskUpdatedAt"] is None


class TestUpdateEmployeeTask:
    """Tests for update_employee_task function."""

    @pytest.mark.asyncio
    async def test_success(self, mock_db, mock_repo, sample_application_model, sample_task_model):
        mock_repo.get_by_id.return_value = sample_application_model
        mock_repo.upsert_task.return_value = sample_task_model
        data = TaskUpdateRequest.model_validate(
            {"employeeUserId": "5", "taskStatus": "completed", "taskNotes": "Documents verified"}
        )

        result = await update_employee_task(mock_db, "41", data)

        mock_repo.upsert_task.assert_awaited_once_with(
            mock_db, 41, 5, TaskStatus.COMPLETED, "Documents verified"
        )
        assert result.id == 7
        assert result.task_status == TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_blank_notes_become_null(
        self, mock_db, mock_repo, sample_application_model, sample_task_model
    ):
        mock_repo.get_by_id.return_value = sample_application_model
        mock_repo.upsert_task.return_value = sample_task_model
        data = TaskUpdateRequest(employee_user_id=5, task_status="under_process", task_notes="")

        await update_employee_task(mock_db, 41, data)

        assert mock_repo.upsert_task.call_args.args[4] is None

    @pytest.mark.asyncio
    async def test_invalid_status_rejected(self, mock_db, mock_repo):
        data = TaskUpdateRequest(employee_user_id=5, task_status="done")

        with pytest.raises(InvalidTaskStatusError):
            await update_employee_task(mock_db, 41, data)

        mock_repo.upsert_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_employee_id_rejected(self, mock_db, mock_repo):
        data = TaskUpdateRequest(employee_user_id="x", task_status="completed")

        with pytest.raises(ValidationError) as exc_info:
            await update_employee_task(mock_db, 41, data)

        assert exc_info.value.message == "Invalid employeeUserId"

    @pytest.mark.asyncio
    async def test_invalid_application_id_rejected(self, mock_db, mock_repo):
        data = TaskUpdateRequest(employee_user_id=5, task_status="completed")

        with pytest.raises(ValidationError) as exc_info:
            await update_employee_task(mock_db, "abc", data)

        assert exc_info.value.message == "Invalid applicationId"

    @pytest.mark.asyncio
    async def test_unknown_application(self, mock_db, mock_repo):
        mock_repo.get_by_id.return_value = None
        data = TaskUpdateRequest(employee_user_id=5, task_status="completed")

        with pytest.raises(ApplicationNotFoundError) as exc_info:
            await update_employee_task(mock_db, 999, data)

        assert exc_info.value.status_code == 404
        mock_repo.upsert_task.assert_not_called()


class TestGetTaskAnalytics:
    """Tests for get_task_analytics function."""

    @pytest.mark.asyncio
    async def test_assembles_response(self, mock_db, mock_repo, now):
        mock_repo.get_employee_task_counts.return_value = [
            {
                "employee_user_id": 5,
                "employee_name": "Grace",
                "task_count": 3,
                "on_time": 1,
                "aging": 1,
                "critical": 1,
            },
            {
                "employee_user_id": 9,
                "employee_name": "Musa",
                "task_count": 2,
                "on_time": 2,
                "aging": 0,
                "critical": 0,
            },
        ]
        mock_repo.get_country_task_counts.return_value = [
            {"country_name": "Canada", "task_count": 4},
            {"country_name": "Unknown", "task_count": 1},
        ]
        mock_repo.get_task_aging_totals.return_value = {
            "total": 5,
            "on_time": 3,
            "aging": 1,
            "critical": 1,
        }

        analytics = await get_task_analytics(mock_db, now=now)

        mock_repo.get_employee_task_counts.assert_awaited_once_with(mock_db, now)
        mock_repo.get_task_aging_totals.assert_awaited_once_with(mock_db, now)

        total = analytics.task_aging.total
        assert sum(row.task_count for row in analytics.employee_tasks) == total
        assert sum(row.task_count for row in analytics.country_tasks) == total
        aging = analytics.task_aging
        assert aging.on_time + aging.aging + aging.critical == total

        body = analytics.model_dump(by_alias=True)
        assert body["taskAging"] == {"onTime": 3, "aging": 1, "critical": 1, "total": 5}
        assert body["employeeTasks"][0]["employeeUserId"] == 5
        assert body["countryTasks"][1]["countryName"] == "Unknown"

    @pytest.mark.asyncio
    async def test_empty(self, mock_db, mock_repo, now):
        mock_repo.get_task_aging_totals.return_value = {
            "total": 0,
            "on_time": 0,
            "aging": 0,
            "critical": 0,
        }

        analytics = await get_task_analytics(mock_db, now=now)

        assert analytics.employee_tasks == []
        assert analytics.country_tasks == []
        assert analytics.task_aging.total == 0


class TestApplicationTaskScenario:
    """Submission, fan-out to two employees, then one employee completes the task."""

    @pytest.mark.asyncio
    async def test_end_to_end(
        self,
        mock_db,
        mock_repo,
        mock_users,
        mock_catalog,
        sample_application_create,
        sample_application_model,
        sample_task_model,
        make_task_row,
        now,
    ):
        sample_application_model.id = 42
        mock_repo.insert_application.return_value = 42
        mock_repo.get_by_id.return_value = sample_application_model
        mock_users.get_employee_ids_for_country.return_value = [7, 8]
        mock_repo.create_tasks.return_value = 2

        submitted = await submit_application(mock_db, sample_application_create)

        assert submitted.status == "created"
        assert submitted.application_id == 42
        mock_repo.create_tasks.assert_awaited_once_with(mock_db, 42, [7, 8])

        sample_task_model.application_id = 42
        sample_task_model.employee_user_id = 7
        sample_task_model.task_notes = "Docs verified"
        mock_repo.upsert_task.return_value = sample_task_model

        updated = await update_employee_task(
            mock_db,
            42,
            TaskUpdateRequest(
                employee_user_id=7, task_status="completed", task_notes="Docs verified"
            ),
        )
        assert updated.task_status == TaskStatus.COMPLETED

        mock_repo.get_tasks_for_employee.return_value = [
            make_task_row(
                42,
                task_status=TaskStatus.COMPLETED,
                task_notes="Docs verified",
                task_updated_at=now,
            )
        ]
        tasks = await list_employee_tasks(mock_db, 7, now=now)

        assert tasks[0].id == 42
        assert tasks[0].task_aging_status is None
        assert tasks[0].task_notes == "Docs verified"
