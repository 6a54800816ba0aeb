"""项目路由

POST /api/projects: 创建项目
GET  /api/projects: 项目列表
GET  /api/projects/{project_id}: 项目详情
"""

import aiosqlite
from fastapi import APIRouter, Depends
from planboard.core.exceptions import PlanboardError
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.responses import JSONResponse

from ..deps import get_store_group
from ..services.task_service import TaskService
from .tasks import error_response, planboard_error_response

router = APIRouter()


class ProjectCreateRequest(BaseModel):
    """创建项目请求体"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1, max_length=200, description="项目名称")
    project_id: str | None = Field(
        default=None,
        min_length=1,
        max_length=200,
        description="可选的项目 ID，缺省时生成 UUID",
    )


@router.post("/api/projects")
async def create_project(
    body: ProjectCreateRequest,
    store_group=Depends(get_store_group),
):
    """创建项目；project_id 重复返回 409"""
    service = TaskService(store_group)
    try:
        project = await service.create_project(body.name, body.project_id)
    except aiosqlite.IntegrityError:
        return error_response(
            409,
            "PROJECT_ALREADY_EXISTS",
            f"Project with id {body.project_id} already exists",
        )

    return JSONResponse(status_code=201, content={"project": project.to_api()})


@router.get("/api/projects")
async def list_projects(store_group=Depends(get_store_group)):
    """查询全部项目"""
    service = TaskService(store_group)
    projects = await service.list_projects()
    return {"projects": [p.to_api() for p in projects]}


@router.get("/api/projects/{project_id}")
async def get_project(
    project_id: str,
    store_group=Depends(get_store_group),
):
    """查询项目详情"""
    service = TaskService(store_group)
    try:
        project = await service.get_project(project_id)
    except PlanboardError as e:
        return planboard_error_response(e)

    return {"project": project.to_api()}
