"""维护任务 -- 历史重复清理与模板目录导入

- dedupe_factor_tasks: 按项目把 (source_id, stage) 相同的 factor 任务合并为最新一条，
  随后补建自然键唯一索引
- load_factor_catalog: 从 JSON 导入 Success Factor 模板目录
"""

import time
from collections.abc import Iterable
from typing import Any

import aiosqlite
import structlog

from .models.factor import CanonicalFactorTask, SuccessFactor
from .models.seeding import DedupeReport
from .store.factor_store import SqliteFactorStore
from .store.project_store import SqliteProjectStore
from .store.sqlite_init import ensure_factor_natural_key_index
from .store.task_store import SqliteTaskStore
from .store.transaction import write_lock, write_transaction

log = structlog.get_logger()


async def dedupe_factor_tasks(
    conn: aiosqlite.Connection,
    project_store: SqliteProjectStore,
    task_store: SqliteTaskStore,
) -> DedupeReport:
    """清理重复的 factor 任务

    流程：
    1. 逐个项目读取 factor 任务（新建在前）
    2. 按 (source_id, stage) 分组，保留第一条，删除其余
    3. 全部提交后创建自然键唯一索引

    Returns:
        DedupeReport 汇总
    """
    start_time = time.monotonic()
    report = DedupeReport()

    projects = await project_store.list_projects()
    await log.ainfo("factor_dedupe_started", project_count=len(projects))

    async with write_transaction(conn):
        for project in projects:
            scope = task_store.scope(project.project_id)
            seen: set[tuple[str | None, str]] = set()
            counted: set[tuple[str | None, str]] = set()
            for task in await scope.list_factor_tasks():
                key = (task.source_id, task.stage.value)
                if key not in seen:
                    seen.add(key)
                    continue
                if key not in counted:
                    counted.add(key)
                    report.duplicate_groups += 1
                await scope.delete(task.id)
                report.deleted_task_ids.append(task.id)
                log.info(
                    "factor_task_duplicate_deleted",
                    project_id=project.project_id,
                    task_id=task.id,
                    source_id=task.source_id,
                    stage=task.stage.value,
                )
            report.projects_scanned += 1

    async with write_lock(conn):
        report.index_created = await ensure_factor_natural_key_index(conn)

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "factor_dedupe_completed",
        projects_scanned=report.projects_scanned,
        duplicate_groups=report.duplicate_groups,
        deleted=len(report.deleted_task_ids),
        index_created=report.index_created,
        elapsed_ms=elapsed_ms,
    )
    return report


def parse_factor_catalog(
    data: Iterable[dict[str, Any]],
) -> list[tuple[SuccessFactor, list[CanonicalFactorTask]]]:
    """解析模板目录 JSON

    格式：``[{"id": ..., "title": ..., "tasks": {"identification": [...], ...}}]``。
    每个阶段的值可以是字符串或字符串列表；一个 (factor, stage) 只保留一条模板，
    列表中多余的条目会被忽略并记录告警。
    """
    catalog: list[tuple[SuccessFactor, list[CanonicalFactorTask]]] = []
    for entry in data:
        factor = SuccessFactor(
            factor_id=entry["id"],
            title=entry.get("title", ""),
        )
        templates: list[CanonicalFactorTask] = []
        for stage, texts in (entry.get("tasks") or {}).items():
            if isinstance(texts, str):
                texts = [texts]
            texts = [t for t in texts if t and t.strip()]
            if not texts:
                continue
            if len(texts) > 1:
                log.warning(
                    "factor_template_extra_tasks_ignored",
                    factor_id=factor.factor_id,
                    stage=stage,
                    ignored=len(texts) - 1,
                )
            templates.append(
                CanonicalFactorTask(factor_id=factor.factor_id, stage=stage, text=texts[0])
            )
        catalog.append((factor, templates))
    return catalog


async def load_factor_catalog(
    conn: aiosqlite.Connection,
    factor_store: SqliteFactorStore,
    data: Iterable[dict[str, Any]],
) -> int:
    """导入模板目录，同一事务内全部写入

    Returns:
        写入的模板任务数
    """
    catalog = parse_factor_catalog(data)
    count = 0
    async with write_transaction(conn):
        for factor, templates in catalog:
            await factor_store.upsert_factor(factor, templates)
            count += len(templates)

    await log.ainfo("factor_catalog_loaded", factors=len(catalog), templates=count)
    return count
