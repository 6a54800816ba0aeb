"""SQLite 数据库初始化

PRAGMA 配置 + 表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite
import structlog

log = structlog.get_logger()

# projects 表 DDL
_PROJECTS_DDL = """
CREATE TABLE IF NOT EXISTS projects (
    project_id  TEXT PRIMARY KEY,
    name        TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL
);
"""

# tasks 表 DDL -- 任务 ID 只保证项目内唯一，主键为 (project_id, id)
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    id          TEXT NOT NULL,
    project_id  TEXT NOT NULL,
    text        TEXT NOT NULL DEFAULT '',
    stage       TEXT NOT NULL DEFAULT 'identification',
    origin      TEXT NOT NULL DEFAULT 'custom',
    source_id   TEXT,
    completed   INTEGER NOT NULL DEFAULT 0,
    notes       TEXT,
    priority    TEXT,
    owner       TEXT,
    due_date    TEXT,
    status      TEXT NOT NULL DEFAULT 'To Do',
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,

    PRIMARY KEY (project_id, id),
    FOREIGN KEY (project_id) REFERENCES projects(project_id)
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_created ON tasks(project_id, created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_source ON tasks(project_id, source_id);",
]

# factor 任务自然键唯一约束：同一项目内 (source_id, stage) 至多一条
FACTOR_NATURAL_KEY_INDEX = "idx_tasks_factor_natural_key"
_FACTOR_NATURAL_KEY_DDL = (
    f"CREATE UNIQUE INDEX IF NOT EXISTS {FACTOR_NATURAL_KEY_INDEX} "
    "ON tasks(project_id, source_id, stage) WHERE origin = 'factor';"
)

# Success Factor 参考数据（只读）
_SUCCESS_FACTORS_DDL = """
CREATE TABLE IF NOT EXISTS success_factors (
    factor_id   TEXT PRIMARY KEY,
    title       TEXT NOT NULL DEFAULT ''
);
"""

_SUCCESS_FACTOR_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS success_factor_tasks (
    factor_id   TEXT NOT NULL,
    stage       TEXT NOT NULL,
    text        TEXT NOT NULL,

    PRIMARY KEY (factor_id, stage),
    FOREIGN KEY (factor_id) REFERENCES success_factors(factor_id)
);
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_PROJECTS_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_SUCCESS_FACTORS_DDL)
    await conn.execute(_SUCCESS_FACTOR_TASKS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()

    await ensure_factor_natural_key_index(conn)


async def ensure_factor_natural_key_index(conn: aiosqlite.Connection) -> bool:
    """创建 factor 自然键唯一索引

    历史数据中已存在重复行时索引无法创建，此时记录告警并返回 False，
    需先执行 ``dedupe-factor-tasks`` 清理。

    Returns:
        True 如果索引已存在或创建成功
    """
    try:
        await conn.execute(_FACTOR_NATURAL_KEY_DDL)
        await conn.commit()
    except aiosqlite.IntegrityError:
        await conn.rollback()
        log.warning(
            "factor_natural_key_index_deferred",
            index=FACTOR_NATURAL_KEY_INDEX,
            hint="run `python -m planboard.core dedupe-factor-tasks`",
        )
        return False
    return True


async def has_factor_natural_key_index(conn: aiosqlite.Connection) -> bool:
    """检查 factor 自然键唯一索引是否存在"""
    cursor = await conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'index' AND name = ?",
        (FACTOR_NATURAL_KEY_INDEX,),
    )
    row = await cursor.fetchone()
    return row is not None
