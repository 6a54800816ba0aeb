"""apply_task_update 单元测试

测试内容：
1. completed 切换幂等、status 不受影响
2. origin / source_id 永远保留
3. 只合并显式出现的字段
4. 并发删除 / 自然键冲突 -> TaskConflictError
"""

from datetime import UTC, datetime

import pytest
from planboard.core.exceptions import TaskConflictError
from planboard.core.models import Stage, TaskOrigin, TaskPatch
from planboard.core.updater import apply_task_update

PROJECT_A = "proj-alpha"
PROJECT_B = "proj-beta"


async def _apply(store_group, task, payload: dict):
    return await apply_task_update(
        store_group.conn,
        store_group.tasks(task.project_id),
        task,
        TaskPatch.model_validate(payload),
    )


class TestToggle:
    async def test_toggle_persists(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1", origin=TaskOrigin.FACTOR, source_id="sf-42")
        updated = await _apply(store_group, task, {"completed": True})

        assert updated.completed is True
        stored = await store_group.tasks(PROJECT_A).get("f1")
        assert stored.completed is True

    async def test_toggle_idempotent(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1")
        first = await _apply(store_group, task, {"completed": True})
        second = await _apply(store_group, first, {"completed": True})

        assert second.completed is True
        assert second.model_dump(exclude={"updated_at"}) == first.model_dump(
            exclude={"updated_at"}
        )

    async def test_status_not_derived_from_completed(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1", status="pending")
        updated = await _apply(store_group, task, {"completed": True})
        assert updated.status == "pending"

    async def test_updated_at_refreshed(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1")
        before = datetime.now(UTC)
        updated = await _apply(store_group, task, {"completed": True})
        assert updated.updated_at >= before
        assert updated.created_at == task.created_at


class TestProvenance:
    async def test_origin_and_source_id_preserved(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1", origin=TaskOrigin.FACTOR, source_id="sf-42")
        updated = await _apply(
            store_group,
            task,
            {"completed": True, "origin": "custom", "sourceId": "sf-hijack"},
        )
        assert updated.origin == TaskOrigin.FACTOR
        assert updated.source_id == "sf-42"

    async def test_unset_fields_untouched(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1", notes="keep me", owner="sam")
        updated = await _apply(store_group, task, {"priority": "high"})
        assert updated.notes == "keep me"
        assert updated.owner == "sam"
        assert updated.priority == "high"

    async def test_blank_notes_cleared(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1", notes="old")
        updated = await _apply(store_group, task, {"notes": ""})
        assert updated.notes is None

    async def test_returns_true_row_id(self, store_group, add_task):
        compound = "2f565bf9-70c7-5c41-93e7-c6c4cde32312-suffix123"
        task = await add_task(PROJECT_A, compound)
        updated = await _apply(store_group, task, {"completed": True})
        assert updated.id == compound


class TestConflicts:
    async def test_concurrent_delete(self, store_group, add_task):
        task = await add_task(PROJECT_A, "f1")
        await store_group.tasks(PROJECT_A).delete("f1")
        await store_group.conn.commit()

        with pytest.raises(TaskConflictError) as exc_info:
            await _apply(store_group, task, {"completed": True})
        assert exc_info.value.code == "TASK_UPDATE_CONFLICT"

    async def test_stage_change_hits_natural_key(self, store_group, add_task):
        await add_task(
            PROJECT_A, "f1", origin=TaskOrigin.FACTOR, source_id="sf-1", stage=Stage.DEFINITION
        )
        task = await add_task(
            PROJECT_A, "f2", origin=TaskOrigin.FACTOR, source_id="sf-1", stage=Stage.DELIVERY
        )

        with pytest.raises(TaskConflictError):
            await _apply(store_group, task, {"stage": "definition"})

        stored = await store_group.tasks(PROJECT_A).get("f2")
        assert stored.stage == Stage.DELIVERY

    async def test_scope_mismatch_rejected(self, store_group, add_task):
        task = await add_task(PROJECT_B, "f1")
        with pytest.raises(ValueError):
            await apply_task_update(
                store_group.conn,
                store_group.tasks(PROJECT_A),
                task,
                TaskPatch.model_validate({"completed": True}),
            )

    async def test_other_project_row_untouched(self, store_group, add_task):
        task_a = await add_task(PROJECT_A, "shared")
        await add_task(PROJECT_B, "shared")

        await _apply(store_group, task_a, {"completed": True})
        assert (await store_group.tasks(PROJECT_B).get("shared")).completed is False
