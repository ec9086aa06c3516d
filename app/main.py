"""ASGI 入口：组装当前业务包的路由、中间件与异常处理。"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.middleware.request_id import RequestIdMiddleware
from app.packages import get_active_package
from app.packages.drive.core.security import consume_refreshed_token

package = get_active_package()
package.setup_logging()
settings = package.get_settings()
logger = package.logger


def _jsonable_errors(value: Any) -> Any:
    """pydantic 的错误详情里可能夹带异常对象，转成字符串后才能序列化。"""
    if isinstance(value, dict):
        return {key: _jsonable_errors(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable_errors(item) for item in value]
    if isinstance(value, Exception):
        return str(value)
    return value


class AccessTokenHeaderMiddleware(BaseHTTPMiddleware):
    """把本次请求新签发的访问令牌回写到 ``X-Access-Token`` 响应头。"""

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        issued = consume_refreshed_token()
        if issued:
            response.headers["X-Access-Token"] = issued
        return response


async def on_validation_error(request: Request, exc: RequestValidationError):
    code = status.HTTP_422_UNPROCESSABLE_ENTITY
    body = package.create_response("请求参数验证失败", _jsonable_errors(exc.errors()), code)
    return JSONResponse(status_code=code, content=body)


@asynccontextmanager
async def lifespan(_: FastAPI):
    package.init_db()
    logger.info("SUCCESS - %s listening on port %s", settings.project_name, settings.app_port)
    yield


def create_app() -> FastAPI:
    application = FastAPI(title=settings.project_name, debug=settings.debug, lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Access-Token", "X-Request-ID"],
    )
    application.add_middleware(AccessTokenHeaderMiddleware)
    application.add_middleware(RequestIdMiddleware)

    for exc_type, handler in package.exception_handlers.items():
        application.add_exception_handler(exc_type, handler)
    application.add_exception_handler(RequestValidationError, on_validation_error)

    @application.get("/health")
    async def health_check() -> dict:
        return package.create_response("OK", {"status": "healthy"})

    application.include_router(package.api_router, prefix=settings.api_v1_str)
    return application


app = create_app()
