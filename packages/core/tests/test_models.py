"""Domain Models 单元测试

测试内容：
1. 枚举值
2. Task camelCase 序列化
3. TaskPatch 字段合并规则（exclude_unset / provenance 剔除 / 空串转 null）
4. SeedReport 失败汇总
"""

from datetime import UTC, datetime

import pytest
from planboard.core.exceptions import SeedingPartialFailureError
from planboard.core.models import (
    FOUND_METHODS,
    CanonicalFactorTask,
    LookupMethod,
    SeedFailure,
    SeedReport,
    Stage,
    Task,
    TaskCreate,
    TaskLookup,
    TaskOrigin,
    TaskPatch,
    is_valid_stage,
)
from pydantic import ValidationError


class TestEnums:
    def test_stage_values(self):
        assert [s.value for s in Stage] == [
            "identification",
            "definition",
            "delivery",
            "closure",
        ]

    def test_origin_values(self):
        assert TaskOrigin.FACTOR == "factor"
        assert TaskOrigin.CUSTOM == "custom"

    def test_is_valid_stage_case_insensitive(self):
        assert is_valid_stage("Delivery")
        assert not is_valid_stage("launch")

    def test_found_methods(self):
        assert LookupMethod.NOT_FOUND not in FOUND_METHODS
        assert LookupMethod.MALFORMED not in FOUND_METHODS
        assert LookupMethod.PREFIX in FOUND_METHODS


class TestTask:
    def _task(self, **overrides) -> Task:
        now = datetime(2025, 1, 1, tzinfo=UTC)
        data = {
            "id": "t-1",
            "project_id": "p-1",
            "text": "Define scope",
            "origin": TaskOrigin.FACTOR,
            "source_id": "sf-1",
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Task(**data)

    def test_defaults(self):
        task = self._task()
        assert task.completed is False
        assert task.stage == Stage.IDENTIFICATION
        assert task.status == "To Do"

    def test_to_api_uses_camel_case(self):
        data = self._task(due_date="2025-02-01").to_api()
        assert data["projectId"] == "p-1"
        assert data["sourceId"] == "sf-1"
        assert data["dueDate"] == "2025-02-01"
        assert data["origin"] == "factor"
        assert "project_id" not in data

    def test_accepts_camel_case_input(self):
        task = Task.model_validate(
            {
                "id": "t-2",
                "projectId": "p-1",
                "sourceId": "sf-9",
                "createdAt": "2025-01-01T00:00:00+00:00",
                "updatedAt": "2025-01-01T00:00:00+00:00",
            }
        )
        assert task.project_id == "p-1"
        assert task.source_id == "sf-9"


class TestTaskPatch:
    def test_only_set_fields(self):
        patch = TaskPatch.model_validate({"completed": True})
        assert patch.changes() == {"completed": True}

    def test_provenance_fields_dropped(self):
        patch = TaskPatch.model_validate(
            {"completed": True, "origin": "custom", "sourceId": "sf-other"}
        )
        assert patch.changes() == {"completed": True}

    def test_blank_strings_become_null(self):
        patch = TaskPatch.model_validate({"notes": "", "owner": "  ", "dueDate": ""})
        assert patch.changes() == {"notes": None, "owner": None, "due_date": None}

    def test_null_on_non_nullable_field_ignored(self):
        patch = TaskPatch.model_validate({"completed": None, "status": None, "notes": None})
        assert patch.changes() == {"notes": None}

    def test_stage_case_insensitive(self):
        patch = TaskPatch.model_validate({"stage": "Closure"})
        assert patch.changes() == {"stage": Stage.CLOSURE}

    def test_invalid_stage_rejected(self):
        with pytest.raises(ValidationError):
            TaskPatch.model_validate({"stage": "launch"})

    def test_empty_text_rejected(self):
        with pytest.raises(ValidationError):
            TaskPatch.model_validate({"text": ""})

    def test_unknown_fields_ignored(self):
        patch = TaskPatch.model_validate({"completed": False, "id": "x", "projectId": "p"})
        assert patch.changes() == {"completed": False}

    def test_completed_does_not_touch_status(self):
        patch = TaskPatch.model_validate({"completed": True})
        assert "status" not in patch.changes()


class TestTaskCreate:
    def test_requires_text(self):
        with pytest.raises(ValidationError):
            TaskCreate.model_validate({"text": ""})

    def test_defaults(self):
        body = TaskCreate.model_validate({"text": "Write charter", "stage": "DEFINITION"})
        assert body.stage == Stage.DEFINITION
        assert body.status == "To Do"


class TestFactorModels:
    def test_stage_normalized(self):
        template = CanonicalFactorTask(factor_id="sf-1", stage=" Delivery ", text="x")
        assert template.stage == "delivery"

    def test_invalid_stage_kept_for_reporting(self):
        template = CanonicalFactorTask(factor_id="sf-1", stage="launch", text="x")
        assert template.stage == "launch"


class TestLookupAndReport:
    def test_lookup_found_requires_task(self):
        lookup = TaskLookup(project_id="p", raw_id="x", method=LookupMethod.EXACT)
        assert lookup.found is False

    def test_report_ok(self):
        report = SeedReport(project_id="p", inserted=3)
        assert report.ok
        report.raise_for_failures()

    def test_report_raise_for_failures(self):
        report = SeedReport(
            project_id="p",
            failures=[SeedFailure(factor_id="sf-1", stage="launch", error_type="InvalidStage")],
        )
        assert not report.ok
        with pytest.raises(SeedingPartialFailureError) as exc_info:
            report.raise_for_failures()
        assert exc_info.value.report is report
        assert exc_info.value.code == "SEEDING_PARTIAL_FAILURE"
