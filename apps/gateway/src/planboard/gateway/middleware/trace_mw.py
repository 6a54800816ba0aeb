"""TraceMiddleware -- 绑定项目与任务引用

从 /api/projects/{project_id}/tasks/{task_ref} 路径中提取 project_id 和 task_ref，
绑定到 structlog contextvars，贯穿本次请求的解析、更新日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


def extract_trace_context(path: str) -> dict[str, str]:
    """从请求路径提取 project_id / task_ref"""
    context: dict[str, str] = {}
    parts = [part for part in path.split("/") if part]
    for i, part in enumerate(parts):
        if i + 1 >= len(parts):
            break
        if part == "projects":
            context["project_id"] = parts[i + 1]
        elif part == "tasks" and "project_id" in context:
            context["task_ref"] = parts[i + 1]
    return context


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为项目/任务操作绑定上下文"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = extract_trace_context(request.url.path)
        if context:
            structlog.contextvars.bind_contextvars(**context)

        return await call_next(request)
