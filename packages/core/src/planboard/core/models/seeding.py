"""Seeding 结果模型

ensure_seeded 逐条处理模板任务，单条失败不会中断整批，
失败项收集在 SeedReport.failures 中。
"""

from pydantic import BaseModel, Field

from ..exceptions import SeedingPartialFailureError


class SeedFailure(BaseModel):
    """单条模板任务克隆失败记录"""

    factor_id: str
    stage: str
    error_type: str = Field(description="异常类型名")
    message: str = Field(default="", description="错误描述")


class SeedReport(BaseModel):
    """一次 ensure_seeded 的汇总"""

    project_id: str
    inserted: int = Field(default=0, description="新插入的任务数")
    skipped: int = Field(default=0, description="已存在而跳过的任务数")
    failures: list[SeedFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        """存在失败项时抛出 SeedingPartialFailureError"""
        if self.failures:
            raise SeedingPartialFailureError(self)


class DedupeReport(BaseModel):
    """一次 dedupe-factor-tasks 的汇总"""

    projects_scanned: int = 0
    duplicate_groups: int = Field(default=0, description="存在重复的 (source_id, stage) 组数")
    deleted_task_ids: list[str] = Field(default_factory=list)
    index_created: bool = Field(default=False, description="清理后自然键唯一索引是否就绪")
