"""项目任务路由

GET    /api/projects/{project_id}/tasks?ensure=true  任务列表（可选补齐 factor 任务）
POST   /api/projects/{project_id}/tasks              创建自定义任务
GET    /api/projects/{project_id}/tasks/{task_id}    解析并返回单个任务
PUT    /api/projects/{project_id}/tasks/{task_id}    解析后应用部分更新
DELETE /api/projects/{project_id}/tasks/{task_id}    按任务 ID 删除（不接受前缀 / source_id 引用）

错误体统一为 {"error": {"code": ..., "message": ...}}。
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from planboard.core.exceptions import MalformedIdentifierError, PlanboardError
from planboard.core.models import TaskCreate, TaskPatch
from pydantic import ValidationError
from starlette.responses import JSONResponse

from ..deps import get_store_group
from ..services.task_service import TaskService

router = APIRouter()

# PlanboardError.code -> HTTP 状态码
_STATUS_BY_CODE: dict[str, int] = {
    "TASK_NOT_FOUND": 404,
    "PROJECT_NOT_FOUND": 404,
    "INVALID_TASK_ID": 400,
    "TASK_REFERENCE_NOT_EXACT": 400,
    "TASK_UPDATE_CONFLICT": 409,
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def planboard_error_response(exc: PlanboardError) -> JSONResponse:
    """把 core 异常映射为 HTTP 错误响应"""
    return error_response(_STATUS_BY_CODE.get(exc.code, 500), exc.code, exc.message)


def _validation_message(exc: ValidationError) -> str:
    errors = exc.errors(include_url=False, include_context=False)
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'body'}: {err['msg']}"
        for err in errors
    )


async def _read_json_object(request: Request) -> dict[str, Any] | None:
    """读取 JSON 对象请求体；非对象或无法解析时返回 None"""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


@router.get("/api/projects/{project_id}/tasks")
async def list_tasks(
    project_id: str,
    ensure: bool = Query(default=False, description="先补齐 Success Factor 任务"),
    store_group=Depends(get_store_group),
):
    """查询项目任务列表，按阶段、创建时间排序"""
    service = TaskService(store_group)
    try:
        tasks = await service.list_tasks(project_id, ensure=ensure)
    except PlanboardError as e:
        return planboard_error_response(e)

    return {"tasks": [t.to_api() for t in tasks]}


@router.post("/api/projects/{project_id}/tasks")
async def create_task(
    project_id: str,
    request: Request,
    store_group=Depends(get_store_group),
):
    """创建自定义任务"""
    payload = await _read_json_object(request)
    if payload is None:
        return error_response(400, "INVALID_PAYLOAD", "Request body must be a JSON object")
    try:
        body = TaskCreate.model_validate(payload)
    except ValidationError as e:
        return error_response(400, "INVALID_PAYLOAD", _validation_message(e))

    service = TaskService(store_group)
    try:
        task = await service.create_task(project_id, body)
    except PlanboardError as e:
        return planboard_error_response(e)

    return JSONResponse(status_code=201, content={"task": task.to_api()})


@router.put("/api/projects/{project_id}/tasks/")
async def update_task_without_id(project_id: str):
    """缺少任务 ID 的更新请求"""
    exc = MalformedIdentifierError("", "missing task id")
    return planboard_error_response(exc)


@router.get("/api/projects/{project_id}/tasks/{task_id}")
async def get_task(
    project_id: str,
    task_id: str,
    store_group=Depends(get_store_group),
):
    """解析任务引用并返回任务"""
    service = TaskService(store_group)
    try:
        lookup = await service.get_task(project_id, task_id)
    except PlanboardError as e:
        return planboard_error_response(e)

    return {"task": lookup.task.to_api(), "lookupMethod": lookup.method.value}


@router.put("/api/projects/{project_id}/tasks/{task_id}")
async def update_task(
    project_id: str,
    task_id: str,
    request: Request,
    store_group=Depends(get_store_group),
):
    """解析任务引用后应用部分更新

    - 200: {"task": ..., "lookupMethod": ...}，task.id 为真实行 ID
    - 400: INVALID_TASK_ID / INVALID_PAYLOAD
    - 404: TASK_NOT_FOUND / PROJECT_NOT_FOUND
    - 409: TASK_UPDATE_CONFLICT
    """
    payload = await _read_json_object(request)
    if payload is None:
        return error_response(400, "INVALID_PAYLOAD", "Request body must be a JSON object")
    try:
        patch = TaskPatch.model_validate(payload)
    except ValidationError as e:
        return error_response(400, "INVALID_PAYLOAD", _validation_message(e))

    service = TaskService(store_group)
    try:
        task, method = await service.update_task(project_id, task_id, patch)
    except PlanboardError as e:
        return planboard_error_response(e)

    return {"task": task.to_api(), "lookupMethod": method.value}


@router.delete("/api/projects/{project_id}/tasks/{task_id}")
async def delete_task(
    project_id: str,
    task_id: str,
    store_group=Depends(get_store_group),
):
    """按任务 ID（或其复合形态）删除"""
    service = TaskService(store_group)
    try:
        task = await service.delete_task(project_id, task_id)
    except PlanboardError as e:
        return planboard_error_response(e)

    return {"deleted": True, "taskId": task.id}
