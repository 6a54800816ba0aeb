"""Success Factor 参考数据 SQLite 实现

核心逻辑只读取 success_factors / success_factor_tasks；
写入仅用于维护命令 ``load-factors`` 导入目录。
"""

import aiosqlite

from ..models.enums import Stage
from ..models.factor import CanonicalFactorTask, SuccessFactor


class SqliteFactorStore:
    """Success Factor 目录的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def list_factors(self) -> list[SuccessFactor]:
        """查询全部 Success Factor"""
        cursor = await self._conn.execute(
            "SELECT factor_id, title FROM success_factors ORDER BY factor_id ASC"
        )
        rows = await cursor.fetchall()
        return [SuccessFactor(factor_id=row[0], title=row[1]) for row in rows]

    async def list_canonical_tasks(self) -> list[CanonicalFactorTask]:
        """查询全部模板任务，按 factor_id、阶段顺序排序"""
        cursor = await self._conn.execute(
            "SELECT factor_id, stage, text FROM success_factor_tasks ORDER BY factor_id ASC"
        )
        rows = await cursor.fetchall()
        stage_order = {stage.value: index for index, stage in enumerate(Stage)}
        rows = sorted(rows, key=lambda row: (row[0], stage_order.get(row[1], len(stage_order))))
        return [
            CanonicalFactorTask(factor_id=row[0], stage=row[1], text=row[2])
            for row in rows
        ]

    async def upsert_factor(
        self,
        factor: SuccessFactor,
        tasks: list[CanonicalFactorTask],
    ) -> None:
        """写入/覆盖一个 Factor 及其模板任务（不自动提交）"""
        await self._conn.execute(
            """
            INSERT INTO success_factors (factor_id, title) VALUES (?, ?)
            ON CONFLICT(factor_id) DO UPDATE SET title = excluded.title
            """,
            (factor.factor_id, factor.title),
        )
        for task in tasks:
            if task.factor_id != factor.factor_id:
                raise ValueError(
                    f"template task belongs to {task.factor_id}, not {factor.factor_id}"
                )
            await self._conn.execute(
                """
                INSERT INTO success_factor_tasks (factor_id, stage, text) VALUES (?, ?, ?)
                ON CONFLICT(factor_id, stage) DO UPDATE SET text = excluded.text
                """,
                (task.factor_id, task.stage, task.text),
            )
