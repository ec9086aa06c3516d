"""异常处理模块：定义统一的业务异常分类与响应格式。

业务异常分类：
- ValidationError：用户输入不合法（空名称、过去的过期时间等），不发起任何写操作；
- NotFound：引用的条目不存在（并发删除、错误的令牌）；
- Expired：分享令牌已过期，对外表现与 NotFound 完全一致；
- InvalidOperation：结构上被禁止的操作（移动到自身或子孙目录下）；
- BackendUnavailable：记录存储或存储网关调用失败，可由用户重试；
- DataIntegrityError：数据本身已损坏（父指针成环）。
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.packages.drive.core.constants import SHARE_LINK_INVALID_MSG
from app.packages.drive.core.logger import logger
from app.packages.drive.core.responses import create_response


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data

    @property
    def msg(self) -> str:
        return str(self.detail)


class ValidationError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_400_BAD_REQUEST, data)


class NotFound(AppException):
    def __init__(self, msg: str = "条目不存在或已被删除", data=None) -> None:
        super().__init__(msg, status.HTTP_404_NOT_FOUND, data)


class Expired(NotFound):
    """过期令牌：刻意复用 NotFound 的状态码与文案，避免泄露令牌是否存在过。"""

    def __init__(self) -> None:
        super().__init__(SHARE_LINK_INVALID_MSG)


class InvalidOperation(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_400_BAD_REQUEST, data)


class BackendUnavailable(AppException):
    def __init__(self, msg: str = "后端服务暂不可用，请稍后重试", data=None) -> None:
        super().__init__(msg, status.HTTP_503_SERVICE_UNAVAILABLE, data)


class DataIntegrityError(AppException):
    def __init__(self, msg: str, data=None) -> None:
        super().__init__(msg, status.HTTP_500_INTERNAL_SERVER_ERROR, data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_response(exc.detail, getattr(exc, "data", None), exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：记录堆栈后返回标准的 500 响应结构。"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content=create_response("服务器内部错误", None, code))
