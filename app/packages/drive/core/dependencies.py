"""路由依赖：数据库会话、当前用户，以及文件树所有者 ID。"""

from collections.abc import Iterator
from typing import NoReturn, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.drive.core.constants import ACCESS_TOKEN_TYPE
from app.packages.drive.core.security import decode_token
from app.packages.drive.crud.users import user_crud
from app.packages.drive.db import session as db_session
from app.packages.drive.models.user import User

bearer = HTTPBearer(auto_error=False)


def _reject(detail: str) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_db() -> Iterator[Session]:
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    """按 Bearer 令牌加载用户；缺失、过期或指向已删除用户时一律 401。"""
    if credentials is None:
        _reject("缺少认证信息")
    if credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        _reject("认证类型无效")

    claims = decode_token(credentials.credentials) or {}
    user_id = claims.get("user_id")
    if user_id is None:
        _reject("Token 无效或已过期")

    user = user_crud.get(db, user_id)
    if user is None:
        _reject("用户不存在")
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="用户未激活")
    return current_user


def get_owner_id(current_user: User = Depends(get_current_active_user)) -> int:
    """只需要所有者 ID 的路由使用此依赖。"""
    return current_user.id
