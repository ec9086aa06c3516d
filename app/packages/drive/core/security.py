"""凭据相关工具。

两类令牌互不相干：

* 访问令牌：JWT，载荷里只有 ``user_id``、``username`` 与 ``exp``；
* 分享令牌：随机字符串，本身不含信息，是否有效只看 ``share_links`` 表。
"""

import secrets
from contextvars import ContextVar
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from .config import get_settings
from .constants import SHARE_TOKEN_BYTES
from .logger import logger
from .timezone import utc_now

_ENCODING = "utf-8"

_issued_token: ContextVar[Optional[str]] = ContextVar("issued_access_token", default=None)


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode(_ENCODING), salt).decode(_ENCODING)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(_ENCODING), hashed_password.encode(_ENCODING))
    except ValueError:
        # 库中存的不是合法的 bcrypt 串
        return False


def create_access_token(claims: Dict[str, Any], lifetime: Optional[timedelta] = None) -> str:
    """为 ``claims`` 签名，过期时间默认取 ``ACCESS_TOKEN_EXPIRE_MINUTES``。"""
    settings = get_settings()
    if lifetime is None:
        lifetime = timedelta(minutes=settings.access_token_expire_minutes)
    payload = {**claims, "exp": utc_now() + lifetime}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """校验签名与过期时间；失败返回 ``None``，由调用方决定如何拒绝。"""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.info("access token rejected: %s", exc)
        return None
    return claims


def generate_share_token() -> str:
    return secrets.token_urlsafe(SHARE_TOKEN_BYTES)


def store_refreshed_token(token: Optional[str]) -> None:
    _issued_token.set(token)


def consume_refreshed_token() -> Optional[str]:
    return _issued_token.get()
