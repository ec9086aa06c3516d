"""统一响应体 ``{msg, data, code, meta}``；成功与失败都走这里。"""

from typing import Any, Optional

from app.packages.drive.core.constants import HTTP_STATUS_OK
from app.packages.drive.core.security import consume_refreshed_token


def create_response(
    msg: str, data: Any = None, code: int = HTTP_STATUS_OK, meta: Optional[dict] = None
) -> dict[str, Any]:
    body: dict[str, Any] = {"msg": msg, "data": data, "code": code}
    issued = consume_refreshed_token()
    if issued:
        meta = {**(meta or {}), "access_token": issued}
    if meta:
        body["meta"] = meta
    return body
