"""Request ID 中间件：把 X-Request-ID 写入日志上下文，并在响应头中回传。

请求未携带该头部时生成一个 UUID4。
"""

from __future__ import annotations

import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.packages.drive.core.logger import set_request_id

_HEADER = b"x-request-id"


class RequestIdMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:  # pragma: no cover
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return
        incoming = dict(scope.get("headers") or []).get(_HEADER)
        rid = incoming.decode("latin-1") if incoming else str(uuid.uuid4())
        set_request_id(rid)

        async def send_with_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", []).append((_HEADER, rid.encode("latin-1")))
            await send(message)

        await self.app(scope, receive, send_with_id)
