"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest_asyncio
from planboard.core.models import (
    CanonicalFactorTask,
    Project,
    Stage,
    SuccessFactor,
    Task,
    TaskOrigin,
)
from planboard.core.store import StoreGroup, create_store_group

PROJECT_A = "proj-alpha"
PROJECT_B = "proj-beta"

# 固定基准时间，测试通过偏移量控制"新旧"
BASE_TIME = datetime(2025, 1, 1, tzinfo=UTC)


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def store_group(core_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """已初始化的 StoreGroup，预置两个项目"""
    group = await create_store_group(str(core_db_path))
    for project_id in (PROJECT_A, PROJECT_B):
        await group.project_store.create_project(
            Project(project_id=project_id, name=project_id, created_at=BASE_TIME)
        )
    await group.conn.commit()
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def add_task(store_group: StoreGroup) -> Callable[..., Awaitable[Task]]:
    """直接写入一条任务行（绕过 seeding），返回写入的 Task"""

    async def _add(
        project_id: str,
        task_id: str,
        *,
        origin: TaskOrigin = TaskOrigin.CUSTOM,
        source_id: str | None = None,
        stage: Stage = Stage.IDENTIFICATION,
        age_minutes: int = 0,
        **fields: Any,
    ) -> Task:
        created = BASE_TIME + timedelta(minutes=age_minutes)
        task = Task(
            id=task_id,
            project_id=project_id,
            text=fields.pop("text", f"task {task_id}"),
            stage=stage,
            origin=origin,
            source_id=source_id,
            created_at=created,
            updated_at=created,
            **fields,
        )
        await store_group.tasks(project_id).insert(task)
        await store_group.conn.commit()
        return task

    return _add


@pytest_asyncio.fixture
async def factor_catalog(store_group: StoreGroup) -> list[CanonicalFactorTask]:
    """写入两个 Success Factor，每个覆盖全部四个阶段"""
    templates: list[CanonicalFactorTask] = []
    for factor_id in ("sf-1", "sf-2"):
        factor_templates = [
            CanonicalFactorTask(factor_id=factor_id, stage=stage.value, text=f"{factor_id} {stage}")
            for stage in Stage
        ]
        await store_group.factor_store.upsert_factor(
            SuccessFactor(factor_id=factor_id, title=factor_id.upper()),
            factor_templates,
        )
        templates.extend(factor_templates)
    await store_group.conn.commit()
    return templates
