"""planboard Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .factor_store import SqliteFactorStore
from .project_store import SqliteProjectStore
from .sqlite_init import ensure_factor_natural_key_index, init_db
from .task_store import ProjectTaskScope, SqliteTaskStore
from .transaction import (
    create_task,
    delete_task,
    insert_factor_task_if_absent,
    update_task_fields,
    write_lock,
    write_transaction,
)


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.write_lock = write_lock(conn)
        self.task_store = SqliteTaskStore(conn)
        self.project_store = SqliteProjectStore(conn)
        self.factor_store = SqliteFactorStore(conn)

    def tasks(self, project_id: str) -> ProjectTaskScope:
        """获取绑定到 project_id 的任务作用域"""
        return self.task_store.scope(project_id)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "ProjectTaskScope",
    "SqliteTaskStore",
    "SqliteProjectStore",
    "SqliteFactorStore",
    "init_db",
    "ensure_factor_natural_key_index",
    "create_task",
    "delete_task",
    "insert_factor_task_if_absent",
    "update_task_fields",
]
