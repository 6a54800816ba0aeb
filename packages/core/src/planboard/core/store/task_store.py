"""TaskStore SQLite 实现

任务查询只能通过 ProjectTaskScope 发起：scope 在构造时绑定 project_id，
每条 SQL 都由 ``_where`` 拼上 ``project_id = ?``，不存在无作用域的任务查询接口。
此处仅提供数据库操作，不自动提交事务。
"""

from datetime import datetime
from typing import Any

import aiosqlite

from ..models.enums import Stage, TaskOrigin
from ..models.task import Task

# SELECT 列顺序，与 _row_to_task 的下标一一对应
_COLUMNS = (
    "id, project_id, text, stage, origin, source_id, completed, notes, "
    "priority, owner, due_date, status, created_at, updated_at"
)

# 允许通过 update_fields 修改的列（id / project_id / origin / source_id 不在其中）
UPDATABLE_COLUMNS: frozenset[str] = frozenset(
    {"text", "stage", "completed", "notes", "priority", "owner", "due_date", "status"}
)

# 新建在前；同一时间戳下后插入的在前
_NEWEST_FIRST = "ORDER BY created_at DESC, rowid DESC"


def to_db_timestamp(value: datetime) -> str:
    """统一时间戳格式，保证按字符串排序与按时间排序一致"""
    return value.isoformat(timespec="microseconds")


class ProjectTaskScope:
    """绑定单个项目的任务查询/写入对象"""

    def __init__(self, conn: aiosqlite.Connection, project_id: str) -> None:
        if not project_id:
            raise ValueError("project_id is required for task access")
        self._conn = conn
        self._project_id = project_id

    @property
    def project_id(self) -> str:
        return self._project_id

    def _where(self, clause: str = "", params: tuple[Any, ...] = ()) -> tuple[str, tuple]:
        """拼接 WHERE 子句，project_id 条件始终在最前"""
        sql = "WHERE project_id = ?"
        if clause:
            sql += f" AND ({clause})"
        return sql, (self._project_id, *params)

    async def _select(
        self,
        clause: str = "",
        params: tuple[Any, ...] = (),
        order_by: str = _NEWEST_FIRST,
    ) -> list[Task]:
        where, args = self._where(clause, params)
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks {where} {order_by}",
            args,
        )
        rows = await cursor.fetchall()
        return [_row_to_task(row) for row in rows]

    async def get(self, task_id: str, nocase: bool = False) -> Task | None:
        """按主键精确查询；nocase=True 时忽略 ASCII 大小写，多条时取最新"""
        clause = "id = ? COLLATE NOCASE" if nocase else "id = ?"
        tasks = await self._select(clause, (task_id,))
        return tasks[0] if tasks else None

    async def find_factor_by_source_id(
        self, source_id: str, nocase: bool = False
    ) -> list[Task]:
        """按 source_id 精确查询 factor 任务，新建在前"""
        collate = " COLLATE NOCASE" if nocase else ""
        return await self._select(
            f"source_id = ?{collate} AND origin = ?",
            (source_id, TaskOrigin.FACTOR.value),
        )

    async def find_by_id_like(self, pattern: str) -> list[Task]:
        """按 ID 前缀（LIKE 模式）查询，新建在前"""
        return await self._select("id LIKE ?", (pattern,))

    async def find_factor_by_source_like(self, pattern: str) -> list[Task]:
        """按 source_id 前缀（LIKE 模式）查询 factor 任务，新建在前"""
        return await self._select(
            "source_id LIKE ? AND origin = ?",
            (pattern, TaskOrigin.FACTOR.value),
        )

    async def factor_task_exists(self, source_id: str, stage: Stage | str) -> bool:
        """检查 (project_id, source_id, stage) 的 factor 任务是否存在"""
        where, args = self._where(
            "source_id = ? AND stage = ? AND origin = ?",
            (source_id, str(stage), TaskOrigin.FACTOR.value),
        )
        cursor = await self._conn.execute(f"SELECT 1 FROM tasks {where} LIMIT 1", args)
        row = await cursor.fetchone()
        return row is not None

    async def list_tasks(self) -> list[Task]:
        """查询项目全部任务，按阶段顺序、创建时间排序"""
        tasks = await self._select(order_by="ORDER BY created_at ASC, rowid ASC")
        stage_order = {stage: index for index, stage in enumerate(Stage)}
        return sorted(tasks, key=lambda t: stage_order[t.stage])

    async def list_factor_tasks(self) -> list[Task]:
        """查询项目全部 factor 任务，新建在前"""
        return await self._select("origin = ?", (TaskOrigin.FACTOR.value,))

    async def insert(self, task: Task) -> None:
        """插入任务行"""
        if task.project_id != self._project_id:
            raise ValueError(
                f"task belongs to project {task.project_id}, scope is {self._project_id}"
            )
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.id,
                task.project_id,
                task.text,
                task.stage.value,
                task.origin.value,
                task.source_id,
                int(task.completed),
                task.notes,
                task.priority,
                task.owner,
                task.due_date,
                task.status,
                to_db_timestamp(task.created_at),
                to_db_timestamp(task.updated_at),
            ),
        )

    async def update_fields(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> int:
        """按主键 + project_id 更新指定列

        Returns:
            受影响行数（0 表示任务已不存在）
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"columns not updatable: {sorted(unknown)}")

        assignments = [f"{name} = ?" for name in fields]
        values = [_to_db_value(value) for value in fields.values()]
        assignments.append("updated_at = ?")
        values.append(to_db_timestamp(updated_at))

        where, args = self._where("id = ?", (task_id,))
        cursor = await self._conn.execute(
            f"UPDATE tasks SET {', '.join(assignments)} {where}",
            (*values, *args),
        )
        return cursor.rowcount

    async def delete(self, task_id: str) -> int:
        """按主键 + project_id 删除

        Returns:
            受影响行数
        """
        where, args = self._where("id = ?", (task_id,))
        cursor = await self._conn.execute(f"DELETE FROM tasks {where}", args)
        return cursor.rowcount


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现 -- 只负责派生 ProjectTaskScope"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    def scope(self, project_id: str) -> ProjectTaskScope:
        """获取绑定到 project_id 的任务访问对象"""
        return ProjectTaskScope(self._conn, project_id)


def _to_db_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Stage):
        return value.value
    return value


def _row_to_task(row: aiosqlite.Row) -> Task:
    """将数据库行转换为 Task 模型"""
    return Task(
        id=row[0],
        project_id=row[1],
        text=row[2],
        stage=row[3],
        origin=row[4],
        source_id=row[5],
        completed=bool(row[6]),
        notes=row[7],
        priority=row[8],
        owner=row[9],
        due_date=row[10],
        status=row[11],
        created_at=datetime.fromisoformat(row[12]),
        updated_at=datetime.fromisoformat(row[13]),
    )
