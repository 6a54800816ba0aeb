"""TaskService -- 项目与任务的业务逻辑

所有任务操作先校验项目存在，再通过 TaskIdResolver 在项目作用域内定位任务：
1. 项目不存在 -> ProjectNotFoundError
2. 标识符非法 -> MalformedIdentifierError
3. 项目内找不到 -> TaskNotFoundError（不做跨项目回退）
4. 写入冲突 -> TaskConflictError
"""

import uuid
from datetime import UTC, datetime

import aiosqlite
import structlog
from planboard.core.exceptions import (
    InexactTaskReferenceError,
    MalformedIdentifierError,
    ProjectNotFoundError,
    TaskNotFoundError,
)
from planboard.core.identifiers import malformed_reason
from planboard.core.models import (
    EXACT_METHODS,
    LookupMethod,
    Project,
    Task,
    TaskCreate,
    TaskLookup,
    TaskOrigin,
    TaskPatch,
)
from planboard.core.resolver import TaskIdResolver
from planboard.core.seeding import ensure_project_seeded
from planboard.core.store import StoreGroup
from planboard.core.store.transaction import create_task, delete_task, write_transaction
from planboard.core.updater import apply_task_update

log = structlog.get_logger()


class TaskService:
    """项目/任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group
        self._resolver = TaskIdResolver(store_group.task_store)

    # ---- 项目 ----

    async def create_project(self, name: str, project_id: str | None = None) -> Project:
        """创建项目；project_id 已存在时抛出 aiosqlite.IntegrityError"""
        project = Project(
            project_id=project_id or str(uuid.uuid4()),
            name=name,
            created_at=datetime.now(UTC),
        )
        async with write_transaction(self._stores.conn):
            await self._stores.project_store.create_project(project)
        log.info("project_created", project_id=project.project_id)
        return project

    async def get_project(self, project_id: str) -> Project:
        project = await self._stores.project_store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def list_projects(self) -> list[Project]:
        return await self._stores.project_store.list_projects()

    # ---- 任务 ----

    async def list_tasks(self, project_id: str, ensure: bool = False) -> list[Task]:
        """查询项目任务列表

        ensure=True 时先补齐 factor 任务；部分失败只记录日志，列表照常返回。
        """
        await self.get_project(project_id)

        if ensure:
            try:
                report = await ensure_project_seeded(self._stores, project_id)
            except aiosqlite.Error as e:
                log.error(
                    "factor_seeding_failed",
                    project_id=project_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
            else:
                if not report.ok:
                    log.warning(
                        "factor_seeding_partial_failure",
                        project_id=project_id,
                        inserted=report.inserted,
                        failures=[f.model_dump() for f in report.failures],
                    )

        return await self._stores.tasks(project_id).list_tasks()

    async def create_task(self, project_id: str, body: TaskCreate) -> Task:
        """创建自定义任务（origin 固定为 custom）"""
        await self.get_project(project_id)

        now = datetime.now(UTC)
        task = Task(
            id=str(uuid.uuid4()),
            project_id=project_id,
            text=body.text,
            stage=body.stage,
            origin=TaskOrigin.CUSTOM,
            completed=False,
            notes=body.notes,
            priority=body.priority,
            owner=body.owner,
            due_date=body.due_date,
            status=body.status,
            created_at=now,
            updated_at=now,
        )
        await create_task(self._stores.conn, self._stores.tasks(project_id), task)
        log.info("task_created", project_id=project_id, task_id=task.id)
        return task

    async def resolve(self, project_id: str, task_ref: str) -> TaskLookup:
        """解析任务引用，未命中时抛出对应异常"""
        await self.get_project(project_id)

        lookup = await self._resolver.resolve(project_id, task_ref)
        if lookup.method == LookupMethod.MALFORMED:
            raise MalformedIdentifierError(task_ref, malformed_reason(task_ref) or "")
        if not lookup.found:
            raise TaskNotFoundError(project_id, task_ref)
        return lookup

    async def get_task(self, project_id: str, task_ref: str) -> TaskLookup:
        return await self.resolve(project_id, task_ref)

    async def update_task(
        self,
        project_id: str,
        task_ref: str,
        patch: TaskPatch,
    ) -> tuple[Task, LookupMethod]:
        """解析后应用部分更新

        Returns:
            (写入后的任务行, 命中的解析策略)
        """
        lookup = await self.resolve(project_id, task_ref)
        updated = await apply_task_update(
            self._stores.conn,
            self._stores.tasks(project_id),
            lookup.task,
            patch,
        )
        return updated, lookup.method

    async def delete_task(self, project_id: str, task_ref: str) -> Task:
        """解析后删除；返回被删除的任务行

        只接受 EXACT / CANONICAL_ID 命中，source_id 与前缀匹配可能指向多条候选。
        """
        lookup = await self.resolve(project_id, task_ref)
        if lookup.method not in EXACT_METHODS:
            log.warning(
                "task_delete_rejected",
                project_id=project_id,
                task_ref=task_ref,
                method=lookup.method.value,
                candidate_count=lookup.candidate_count,
            )
            raise InexactTaskReferenceError(project_id, task_ref, lookup.method.value)
        rowcount = await delete_task(
            self._stores.conn,
            self._stores.tasks(project_id),
            lookup.task.id,
        )
        if rowcount == 0:
            raise TaskNotFoundError(project_id, task_ref)
        log.info(
            "task_deleted",
            project_id=project_id,
            task_id=lookup.task.id,
            origin=lookup.task.origin.value,
        )
        return lookup.task
