"""Success Factor 任务克隆（Seeding Guard）

把 Success Factor 模板任务克隆到项目中，保证 (project_id, source_id, stage)
至多一条 factor 任务。可重复执行：已存在的跳过，单条失败记录后继续。
"""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

import aiosqlite
import structlog

from .config import SEEDED_TASK_STATUS
from .models.enums import Stage, TaskOrigin, is_valid_stage
from .models.factor import CanonicalFactorTask
from .models.seeding import SeedFailure, SeedReport
from .models.task import Task
from .store import StoreGroup
from .store.task_store import ProjectTaskScope
from .store.transaction import insert_factor_task_if_absent

log = structlog.get_logger()


def _build_factor_task(project_id: str, template: CanonicalFactorTask) -> Task:
    now = datetime.now(UTC)
    return Task(
        id=str(uuid.uuid4()),
        project_id=project_id,
        text=template.text,
        stage=Stage(template.stage),
        origin=TaskOrigin.FACTOR,
        source_id=template.factor_id,
        completed=False,
        status=SEEDED_TASK_STATUS,
        created_at=now,
        updated_at=now,
    )


async def ensure_seeded(
    conn: aiosqlite.Connection,
    scope: ProjectTaskScope,
    factors: Iterable[CanonicalFactorTask],
) -> SeedReport:
    """为项目补齐缺失的 factor 任务

    每条模板任务在独立事务中"检查 + 插入"，失败项回滚后记入报告。

    Returns:
        SeedReport 汇总
    """
    report = SeedReport(project_id=scope.project_id)

    for template in factors:
        if not is_valid_stage(template.stage):
            report.failures.append(
                SeedFailure(
                    factor_id=template.factor_id,
                    stage=template.stage,
                    error_type="InvalidStage",
                    message=f"unknown stage {template.stage!r}",
                )
            )
            continue

        try:
            task = _build_factor_task(scope.project_id, template)
            inserted = await insert_factor_task_if_absent(conn, scope, task)
        except Exception as e:
            log.warning(
                "factor_task_seed_failed",
                project_id=scope.project_id,
                factor_id=template.factor_id,
                stage=template.stage,
                error_type=type(e).__name__,
                error=str(e),
            )
            report.failures.append(
                SeedFailure(
                    factor_id=template.factor_id,
                    stage=template.stage,
                    error_type=type(e).__name__,
                    message=str(e),
                )
            )
            continue

        if inserted:
            report.inserted += 1
        else:
            report.skipped += 1

    log.info(
        "factor_tasks_seeded",
        project_id=scope.project_id,
        inserted=report.inserted,
        skipped=report.skipped,
        failures=len(report.failures),
    )
    return report


async def ensure_project_seeded(store_group: StoreGroup, project_id: str) -> SeedReport:
    """读取模板目录并为单个项目执行 ensure_seeded"""
    templates = await store_group.factor_store.list_canonical_tasks()
    return await ensure_seeded(
        store_group.conn,
        store_group.tasks(project_id),
        templates,
    )


async def backfill_all_projects(store_group: StoreGroup) -> list[SeedReport]:
    """为所有已存在的项目补齐 factor 任务"""
    templates = await store_group.factor_store.list_canonical_tasks()
    projects = await store_group.project_store.list_projects()

    reports: list[SeedReport] = []
    for project in projects:
        report = await ensure_seeded(
            store_group.conn,
            store_group.tasks(project.project_id),
            templates,
        )
        if not report.ok:
            log.warning(
                "factor_seeding_partial_failure",
                project_id=project.project_id,
                failures=len(report.failures),
            )
        reports.append(report)

    log.info("factor_backfill_completed", projects=len(reports))
    return reports
