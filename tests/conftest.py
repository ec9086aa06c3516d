"""测试夹具：为 pytest 提供数据库、存储目录与客户端的共享配置。

环境变量必须在导入应用之前写入，``get_settings`` 会缓存首次读取的结果。
"""

import os
import tempfile
import uuid
from typing import Generator

TEST_DB_PATH = os.path.join(os.path.dirname(__file__), "test.db")
TEST_STORAGE_ROOT = tempfile.mkdtemp(prefix="drive_storage_")
TEST_LOG_DIR = tempfile.mkdtemp(prefix="drive_logs_")

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["STORAGE_TYPE"] = "LOCAL"
os.environ["STORAGE_LOCAL_ROOT"] = TEST_STORAGE_ROOT
os.environ["LOG_DIR"] = TEST_LOG_DIR
os.environ["PUBLIC_ORIGIN"] = "http://testserver"
# 指向不可达端口，视图状态存储回退到进程内存
os.environ["REDIS_HOST"] = "127.0.0.1"
os.environ["REDIS_PORT"] = "1"

import shutil  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.main import app  # noqa: E402
from app.packages.drive.core.dependencies import get_db  # noqa: E402
from app.packages.drive.core.security import get_password_hash  # noqa: E402
from app.packages.drive.crud.users import user_crud  # noqa: E402
from app.packages.drive.db import session as db_session  # noqa: E402
from app.packages.drive.db.init_db import init_db  # noqa: E402
from app.packages.drive.models.user import User  # noqa: E402
from app.packages.drive.services import view_state_service as view_state_module  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    init_db()
    yield

    db_session.engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)
    shutil.rmtree(TEST_STORAGE_ROOT, ignore_errors=True)
    shutil.rmtree(TEST_LOG_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def fresh_view_states(monkeypatch):
    """每个用例使用独立的内存视图状态。"""
    monkeypatch.setattr(view_state_module.view_state_service, "_backend", view_state_module._InMemoryStore())


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def user(db: Session) -> User:
    """每个用例一个独立用户，文件树互不干扰。"""
    return user_crud.create(
        db,
        {
            "username": f"u_{uuid.uuid4().hex[:12]}",
            "hashed_password": get_password_hash("secret123"),
            "is_active": True,
        },
    )


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """构建 FastAPI TestClient，并注入测试专用的数据库依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client: TestClient) -> dict:
    """注册一个新用户并返回带 Bearer 令牌的请求头。"""
    username = f"api_{uuid.uuid4().hex[:10]}"
    client.post("/api/v1/auth/register", json={"username": username, "password": "secret123"})
    resp = client.post("/api/v1/auth/login", json={"username": username, "password": "secret123"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}
