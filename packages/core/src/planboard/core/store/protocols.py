"""Store Protocol 接口定义

定义任务作用域、项目、Success Factor 目录的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
任务接口只有"绑定项目后的作用域"一种形态，不提供无作用域查询。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.enums import Stage
from ..models.factor import CanonicalFactorTask, SuccessFactor
from ..models.project import Project
from ..models.task import Task


class TaskScope(Protocol):
    """绑定单个项目的任务存储接口"""

    @property
    def project_id(self) -> str:
        """作用域所属项目"""
        ...

    async def get(self, task_id: str, nocase: bool = False) -> Task | None:
        """按主键精确查询；nocase=True 时忽略 ASCII 大小写"""
        ...

    async def find_factor_by_source_id(
        self, source_id: str, nocase: bool = False
    ) -> list[Task]:
        """按 source_id 精确查询 factor 任务，新建在前"""
        ...

    async def find_by_id_like(self, pattern: str) -> list[Task]:
        """按 ID 前缀查询，新建在前"""
        ...

    async def find_factor_by_source_like(self, pattern: str) -> list[Task]:
        """按 source_id 前缀查询 factor 任务，新建在前"""
        ...

    async def factor_task_exists(self, source_id: str, stage: Stage | str) -> bool:
        """检查 factor 自然键是否已存在"""
        ...

    async def list_tasks(self) -> list[Task]:
        """查询项目全部任务"""
        ...

    async def insert(self, task: Task) -> None:
        """插入任务行"""
        ...

    async def update_fields(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> int:
        """更新指定列，返回受影响行数"""
        ...

    async def delete(self, task_id: str) -> int:
        """删除任务，返回受影响行数"""
        ...


class ProjectStore(Protocol):
    """项目存储接口"""

    async def create_project(self, project: Project) -> None:
        """创建项目记录"""
        ...

    async def get_project(self, project_id: str) -> Project | None:
        """根据 project_id 查询项目"""
        ...

    async def list_projects(self) -> list[Project]:
        """查询全部项目"""
        ...


class FactorCatalog(Protocol):
    """Success Factor 目录接口（只读）"""

    async def list_factors(self) -> list[SuccessFactor]:
        """查询全部 Success Factor"""
        ...

    async def list_canonical_tasks(self) -> list[CanonicalFactorTask]:
        """查询全部模板任务"""
        ...
