"""标识符解析结果

解析器对"找不到"和"格式错误"都返回 TaskLookup，而不是抛异常，
由调用方（HTTP 层）映射为 404 / 400。
"""

from pydantic import BaseModel, Field

from .enums import FOUND_METHODS, LookupMethod
from .task import Task


class TaskLookup(BaseModel):
    """一次 resolve 的结果"""

    project_id: str = Field(description="请求的项目 ID")
    raw_id: str = Field(description="原始标识符")
    method: LookupMethod = Field(description="命中的解析策略")
    task: Task | None = Field(default=None, description="命中的任务行")
    canonical_id: str | None = Field(
        default=None,
        description="规范化后的标识符（无法规范化时为 None）",
    )
    candidate_count: int = Field(
        default=0,
        description="命中策略下的候选数，大于 1 表示历史数据存在重复",
    )

    @property
    def found(self) -> bool:
        return self.method in FOUND_METHODS and self.task is not None
