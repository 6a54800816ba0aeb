"""Canonical Success Factor 参考数据

跨项目共享的任务模板，只作为克隆（seeding）来源，核心逻辑只读。
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class SuccessFactor(BaseModel):
    """Success Factor 定义"""

    factor_id: str = Field(description="Factor 唯一标识")
    title: str = Field(default="", description="Factor 标题")


class CanonicalFactorTask(BaseModel):
    """某个 Factor 在某个阶段下的模板任务

    (factor_id, stage) 与 project_id 一起构成 factor 任务的自然键。
    stage 保留原始字符串，非法阶段由 seeding 记录为失败项而不是在此拒绝。
    """

    factor_id: str = Field(min_length=1, description="来源 Factor ID，克隆后写入 source_id")
    stage: str = Field(description="工作流阶段")
    text: str = Field(description="模板任务文本")

    @field_validator("stage", mode="before")
    @classmethod
    def _normalize_stage(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value
