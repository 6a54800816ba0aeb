"""ProjectStore SQLite 实现"""

from datetime import datetime

import aiosqlite

from ..models.project import Project
from .task_store import to_db_timestamp


class SqliteProjectStore:
    """ProjectStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_project(self, project: Project) -> None:
        """创建项目记录（不自动提交）"""
        await self._conn.execute(
            "INSERT INTO projects (project_id, name, created_at) VALUES (?, ?, ?)",
            (project.project_id, project.name, to_db_timestamp(project.created_at)),
        )

    async def get_project(self, project_id: str) -> Project | None:
        """根据 project_id 查询项目"""
        cursor = await self._conn.execute(
            "SELECT project_id, name, created_at FROM projects WHERE project_id = ?",
            (project_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_project(row)

    async def list_projects(self) -> list[Project]:
        """查询全部项目，按创建时间正序"""
        cursor = await self._conn.execute(
            "SELECT project_id, name, created_at FROM projects ORDER BY created_at ASC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_project(row) for row in rows]

    @staticmethod
    def _row_to_project(row: aiosqlite.Row) -> Project:
        return Project(
            project_id=row[0],
            name=row[1],
            created_at=datetime.fromisoformat(row[2]),
        )
