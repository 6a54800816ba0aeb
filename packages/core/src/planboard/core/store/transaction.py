"""任务写入的事务封装

每个函数在同一 SQLite 事务内完成检查与写入，成功后提交，失败时回滚并继续抛出。
同一连接上的写事务通过 ``write_lock`` 串行化：多个协程共享一个连接时，
一个协程的 rollback 不会撤销另一个协程尚未提交的写入。
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import aiosqlite

from ..models.task import Task
from .sqlite_init import FACTOR_NATURAL_KEY_INDEX
from .task_store import ProjectTaskScope

_write_locks: "weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def write_lock(conn: aiosqlite.Connection) -> asyncio.Lock:
    """获取连接级写锁（同一连接始终返回同一把锁）"""
    lock = _write_locks.get(conn)
    if lock is None:
        lock = asyncio.Lock()
        _write_locks[conn] = lock
    return lock


def is_factor_natural_key_conflict(error: Exception) -> bool:
    """判断 IntegrityError 是否来自 factor 自然键唯一索引"""
    if not isinstance(error, aiosqlite.IntegrityError):
        return False
    text = str(error)
    return (
        FACTOR_NATURAL_KEY_INDEX in text
        or "tasks.project_id, tasks.source_id, tasks.stage" in text
    )


@asynccontextmanager
async def write_transaction(conn: aiosqlite.Connection) -> AsyncIterator[None]:
    """持有写锁执行一个写事务：正常退出提交，异常时回滚并继续抛出"""
    async with write_lock(conn):
        if not conn.in_transaction:
            await conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            await conn.rollback()
            raise
        await conn.commit()


async def insert_factor_task_if_absent(
    conn: aiosqlite.Connection,
    scope: ProjectTaskScope,
    task: Task,
) -> bool:
    """同一事务内检查 (project_id, source_id, stage) 并在缺失时插入

    并发 ensure 时唯一索引兜底：索引冲突视为"已存在"。

    Returns:
        True 如果插入了新行，False 如果已存在
    """
    if task.source_id is None:
        raise ValueError("factor task requires source_id")
    try:
        async with write_transaction(conn):
            if await scope.factor_task_exists(task.source_id, task.stage):
                return False
            await scope.insert(task)
    except aiosqlite.IntegrityError as e:
        if is_factor_natural_key_conflict(e):
            return False
        raise
    return True


async def create_task(
    conn: aiosqlite.Connection,
    scope: ProjectTaskScope,
    task: Task,
) -> None:
    """插入单个任务并提交"""
    async with write_transaction(conn):
        await scope.insert(task)


async def update_task_fields(
    conn: aiosqlite.Connection,
    scope: ProjectTaskScope,
    task_id: str,
    fields: dict[str, Any],
    updated_at: datetime,
) -> int:
    """按 (id, project_id) 更新并提交

    Returns:
        受影响行数
    """
    async with write_transaction(conn):
        rowcount = await scope.update_fields(task_id, fields, updated_at)
    return rowcount


async def delete_task(
    conn: aiosqlite.Connection,
    scope: ProjectTaskScope,
    task_id: str,
) -> int:
    """按 (id, project_id) 删除并提交

    Returns:
        受影响行数
    """
    async with write_transaction(conn):
        rowcount = await scope.delete(task_id)
    return rowcount
