"""目录视图状态存储：记录每个用户当前所在目录、排序方式与选择集。

优先使用 Redis（REDIS_HOST/REDIS_PORT/REDIS_DB），不可用时回退到进程内存。
键：drive:view_state:{user_id}，值为 ``ViewState.to_dict()`` 的 JSON。
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import redis

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.constants import VIEW_STATE_TTL_SECONDS
from app.packages.drive.core.exceptions import BackendUnavailable
from app.packages.drive.core.logger import logger
from app.packages.drive.services.bulk_service import ViewState


def _decode(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except ValueError:
        logger.warning("discarding unreadable view state payload")
        return None
    return payload if isinstance(payload, dict) else None


@contextmanager
def _store_call(operation: str, user_id: int) -> Iterator[None]:
    """Redis 在运行期间断开时，转换为可重试的 ``BackendUnavailable``。"""
    try:
        yield
    except redis.RedisError as exc:
        logger.error("view state %s failed: %s", operation, exc, extra={"user_id": user_id})
        raise BackendUnavailable() from exc


class _InMemoryStore:
    def __init__(self) -> None:
        self._store: Dict[int, str] = {}

    def save(self, user_id: int, raw: str) -> None:
        self._store[user_id] = raw

    def load(self, user_id: int) -> Optional[str]:
        return self._store.get(user_id)

    def drop(self, user_id: int) -> None:
        self._store.pop(user_id, None)


class _RedisStore:
    def __init__(self, url: str) -> None:
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._client.ping()

    @staticmethod
    def _key(user_id: int) -> str:
        return f"drive:view_state:{user_id}"

    def save(self, user_id: int, raw: str) -> None:
        self._client.set(self._key(user_id), raw, ex=VIEW_STATE_TTL_SECONDS)

    def load(self, user_id: int) -> Optional[str]:
        return self._client.get(self._key(user_id))

    def drop(self, user_id: int) -> None:
        self._client.delete(self._key(user_id))


class ViewStateService:
    def __init__(self, backend=None) -> None:
        if backend is not None:
            self._backend = backend
            return
        settings = get_settings()
        try:
            self._backend = _RedisStore(settings.redis_url)
            logger.info("View state store using Redis: %s", settings.redis_url)
        except redis.RedisError:
            self._backend = _InMemoryStore()
            logger.warning("View state store falling back to in-memory store")

    def get(self, user_id: int) -> ViewState:
        with _store_call("load", user_id):
            raw = self._backend.load(user_id)
        payload = _decode(raw)
        if payload is None:
            return ViewState()
        try:
            return ViewState.from_dict(payload)
        except (TypeError, ValueError):
            logger.warning("resetting malformed view state", extra={"user_id": user_id})
            return ViewState()

    def save(self, user_id: int, state: ViewState) -> ViewState:
        raw = json.dumps(state.to_dict(), ensure_ascii=False)
        with _store_call("save", user_id):
            self._backend.save(user_id, raw)
        return state

    def reset(self, user_id: int) -> None:
        with _store_call("drop", user_id):
            self._backend.drop(user_id)


view_state_service = ViewStateService()
