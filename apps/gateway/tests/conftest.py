"""apps/gateway 测试配置 -- httpx AsyncClient + 临时数据库 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from planboard.core.store import StoreGroup, create_store_group

_ENV_KEYS = ("PLANBOARD_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE")


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（手动初始化 StoreGroup，绕过 lifespan）"""
    db_path = tmp_path / "sqlite" / "test.db"
    os.environ["PLANBOARD_DB_PATH"] = str(db_path)
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from planboard.gateway.main import create_app

    application = create_app()
    store_group = await create_store_group(str(db_path))
    application.state.store_group = store_group

    yield application

    await store_group.conn.close()
    for key in _ENV_KEYS:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def store_group(app) -> StoreGroup:
    return app.state.store_group


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def project_id(client: AsyncClient) -> str:
    """通过 API 创建一个项目"""
    resp = await client.post("/api/projects", json={"name": "Alpha", "projectId": "P1"})
    assert resp.status_code == 201
    return resp.json()["project"]["projectId"]
