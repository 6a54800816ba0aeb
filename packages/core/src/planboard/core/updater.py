"""任务更新应用

把 TaskPatch 合并到已解析的任务行上并持久化：
- 只合并请求中显式出现的字段
- origin / source_id 永远保留原值
- completed 直接赋值，status 不由 completed 推导
- 写入条件为 (id, project_id)，0 行受影响视为并发删除
"""

from datetime import UTC, datetime

import aiosqlite
import structlog

from .exceptions import TaskConflictError
from .models.task import Task, TaskPatch
from .store.task_store import ProjectTaskScope
from .store.transaction import is_factor_natural_key_conflict, update_task_fields

log = structlog.get_logger()


async def apply_task_update(
    conn: aiosqlite.Connection,
    scope: ProjectTaskScope,
    task: Task,
    patch: TaskPatch,
) -> Task:
    """应用部分更新并返回写入后的任务行

    Args:
        conn: 数据库连接（负责提交/回滚）
        scope: 任务所属项目的作用域
        task: 解析器返回的任务行
        patch: 已校验的更新请求

    Returns:
        写入后重新读取的任务行，其 id 为真实行 ID

    Raises:
        TaskConflictError: 任务已被并发删除，或阶段变更与 factor 自然键冲突
    """
    if task.project_id != scope.project_id:
        raise ValueError(
            f"task {task.id} belongs to project {task.project_id}, "
            f"scope is {scope.project_id}"
        )

    changes = patch.changes()
    now = datetime.now(UTC)

    try:
        rowcount = await update_task_fields(conn, scope, task.id, changes, now)
    except aiosqlite.IntegrityError as e:
        if is_factor_natural_key_conflict(e):
            log.warning(
                "task_update_conflict",
                project_id=scope.project_id,
                task_id=task.id,
                reason="factor_natural_key",
            )
            raise TaskConflictError(
                scope.project_id,
                task.id,
                "another factor task already occupies this stage",
            ) from e
        raise

    if rowcount == 0:
        log.warning(
            "task_update_conflict",
            project_id=scope.project_id,
            task_id=task.id,
            reason="row_missing",
        )
        raise TaskConflictError(scope.project_id, task.id, "task no longer exists")

    updated = await scope.get(task.id)
    if updated is None:
        raise TaskConflictError(scope.project_id, task.id, "task no longer exists")

    log.info(
        "task_updated",
        project_id=scope.project_id,
        task_id=updated.id,
        fields=sorted(changes),
        completed=updated.completed,
    )
    return updated
