"""Project Domain Model"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Project(BaseModel):
    """项目 -- 任务的归属边界"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project_id: str = Field(description="项目 ID，缺省为 UUID")
    name: str = Field(description="项目名称")
    created_at: datetime = Field(description="创建时间")

    def to_api(self) -> dict:
        """序列化为对外 JSON（camelCase）"""
        return self.model_dump(mode="json", by_alias=True)
