"""账号服务：注册、登录。登录成功后签发 Bearer 访问令牌。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.constants import ACCESS_TOKEN_TYPE, HTTP_STATUS_CONFLICT, HTTP_STATUS_UNAUTHORIZED
from app.packages.drive.core.exceptions import AppException, ValidationError
from app.packages.drive.core.logger import logger
from app.packages.drive.core.responses import create_response
from app.packages.drive.core.security import (
    create_access_token,
    get_password_hash,
    store_refreshed_token,
    verify_password,
)
from app.packages.drive.crud.users import user_crud
from app.packages.drive.models.user import User


def account_payload(user: User) -> dict:
    return {"user_id": user.id, "username": user.username, "nickname": user.nickname}


class AuthService:
    def register_user(
        self, db: Session, *, username: str, password: str, nickname: Optional[str] = None
    ) -> dict:
        """用户名去除首尾空白后必须唯一；昵称缺省时沿用用户名。"""
        username = (username or "").strip()
        if not (username and password):
            raise ValidationError("用户名和密码不能为空")
        if user_crud.get_by_username(db, username) is not None:
            raise AppException(msg="用户名已存在", code=HTTP_STATUS_CONFLICT)

        account = user_crud.create(
            db,
            {
                "username": username,
                "hashed_password": get_password_hash(password),
                "nickname": nickname or username,
                "is_active": True,
            },
        )
        logger.info("account created: %s", username, extra={"user_id": account.id})
        return create_response("注册成功", account_payload(account))

    def login(self, db: Session, *, username: str, password: str) -> dict:
        account = user_crud.get_by_username(db, (username or "").strip())
        if account is None or not verify_password(password, account.hashed_password):
            logger.info("login rejected for %s", username)
            # 用户不存在与密码错误使用同一文案
            raise AppException(msg="用户名或密码错误", code=HTTP_STATUS_UNAUTHORIZED)

        token = create_access_token({"user_id": account.id, "username": account.username})
        store_refreshed_token(token)
        return create_response("登录成功", {"access_token": token, "token_type": ACCESS_TOKEN_TYPE})


auth_service = AuthService()
