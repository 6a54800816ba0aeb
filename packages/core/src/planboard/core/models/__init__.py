"""planboard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    EXACT_METHODS,
    FOUND_METHODS,
    LookupMethod,
    Stage,
    TaskOrigin,
    is_valid_stage,
)
from .factor import CanonicalFactorTask, SuccessFactor
from .lookup import TaskLookup
from .project import Project
from .seeding import DedupeReport, SeedFailure, SeedReport
from .task import Task, TaskCreate, TaskPatch

__all__ = [
    # 枚举
    "TaskOrigin",
    "Stage",
    "LookupMethod",
    "EXACT_METHODS",
    "FOUND_METHODS",
    "is_valid_stage",
    # Task
    "Task",
    "TaskCreate",
    "TaskPatch",
    "TaskLookup",
    # Project
    "Project",
    # Success Factor
    "SuccessFactor",
    "CanonicalFactorTask",
    # Seeding
    "SeedFailure",
    "SeedReport",
    "DedupeReport",
]
