"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性与 factor 自然键唯一索引状态。
"""

import structlog
from fastapi import APIRouter, Request
from planboard.core.store.sqlite_init import has_factor_natural_key_index
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查

    检查项：
    1. sqlite: 数据库连通性（失败时 503）
    2. factor_natural_key_index: 唯一索引是否已创建；缺失只标记 degraded，
       需要执行 dedupe-factor-tasks
    """
    checks: dict[str, str] = {}
    all_ok = True

    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        log.warning("readiness_check_failed", check="sqlite", error=str(e))
        checks["sqlite"] = "unavailable"
        all_ok = False

    if all_ok:
        try:
            index_ready = await has_factor_natural_key_index(store_group.conn)
            checks["factor_natural_key_index"] = "ok" if index_ready else "degraded"
        except Exception as e:
            log.warning("readiness_check_failed", check="factor_natural_key_index", error=str(e))
            checks["factor_natural_key_index"] = "unavailable"
            all_ok = False
    else:
        checks["factor_natural_key_index"] = "skipped"

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )
