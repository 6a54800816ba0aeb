"""Task Domain Model

tasks 表中的每一行都归属于唯一的 project_id，
所有查询和写入都必须带上 project_id 作用域。
对外 JSON 使用 camelCase（projectId / sourceId），内部使用 snake_case。
"""

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..config import DEFAULT_TASK_STATUS, TASK_TEXT_MAX_LENGTH
from .enums import Stage, TaskOrigin


class Task(BaseModel):
    """Task 数据模型

    origin 和 source_id 是来源信息（provenance），
    更新时永远不会被请求体覆盖。
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="任务 ID，UUID 或历史遗留的复合 ID")
    project_id: str = Field(description="所属项目 ID")
    text: str = Field(default="", description="任务文本")
    stage: Stage = Field(default=Stage.IDENTIFICATION, description="工作流阶段")
    origin: TaskOrigin = Field(default=TaskOrigin.CUSTOM, description="任务来源")
    source_id: str | None = Field(
        default=None,
        description="factor 任务对应的 Success Factor ID，跨项目不唯一",
    )
    completed: bool = Field(default=False, description="是否已完成")
    notes: str | None = Field(default=None, description="备注")
    priority: str | None = Field(default=None, description="优先级")
    owner: str | None = Field(default=None, description="负责人")
    due_date: str | None = Field(default=None, description="截止日期")
    status: str = Field(default=DEFAULT_TASK_STATUS, description="状态文本，与 completed 相互独立")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    def to_api(self) -> dict[str, Any]:
        """序列化为对外 JSON（camelCase）"""
        return self.model_dump(mode="json", by_alias=True)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


class TaskCreate(BaseModel):
    """创建自定义任务的请求体（origin 固定为 custom）"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    text: str = Field(min_length=1, max_length=TASK_TEXT_MAX_LENGTH)
    stage: Stage = Field(default=Stage.IDENTIFICATION)
    notes: str | None = None
    priority: str | None = None
    owner: str | None = None
    due_date: str | None = None
    status: str = Field(default=DEFAULT_TASK_STATUS)

    @field_validator("stage", mode="before")
    @classmethod
    def _lower_stage(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("notes", "priority", "owner", "due_date", mode="before")
    @classmethod
    def _empty_as_null(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TaskPatch(BaseModel):
    """部分更新请求体

    只有请求中显式出现的字段才会被合并。
    origin / source_id 允许出现在请求体中（客户端常回传旧值），但会被丢弃。
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    PROVENANCE_FIELDS: ClassVar[frozenset[str]] = frozenset({"origin", "source_id"})
    # 这些列在库中 NOT NULL，显式传 null 视为未设置
    NON_NULLABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"text", "stage", "completed", "status"}
    )

    text: str | None = Field(default=None, min_length=1, max_length=TASK_TEXT_MAX_LENGTH)
    stage: Stage | None = None
    completed: bool | None = None
    notes: str | None = None
    priority: str | None = None
    owner: str | None = None
    due_date: str | None = None
    status: str | None = None
    origin: str | None = None
    source_id: str | None = None

    @field_validator("stage", mode="before")
    @classmethod
    def _lower_stage(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("notes", "priority", "owner", "due_date", mode="before")
    @classmethod
    def _empty_as_null(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def changes(self) -> dict[str, Any]:
        """返回可写入的字段（已剔除 provenance 字段）"""
        data = self.model_dump(exclude_unset=True)
        for name in self.PROVENANCE_FIELDS:
            data.pop(name, None)
        return {
            name: value
            for name, value in data.items()
            if not (value is None and name in self.NON_NULLABLE_FIELDS)
        }
