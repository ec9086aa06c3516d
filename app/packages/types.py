"""业务包描述对象：主应用只通过它接入一个业务包。"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import Logger
from typing import Any, Awaitable, Callable, Mapping

from fastapi import APIRouter

ExceptionHandler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class AppPackage:
    name: str
    api_router: APIRouter
    get_settings: Callable[[], Any]
    logger: Logger
    setup_logging: Callable[[], None]
    # 启动钩子，在应用开始接收请求前调用一次
    init_db: Callable[[], None]
    create_response: Callable[..., dict]
    # 异常类型 -> 处理函数；按 MRO 匹配，``Exception`` 兜底
    exception_handlers: Mapping[type, ExceptionHandler] = field(default_factory=dict)
