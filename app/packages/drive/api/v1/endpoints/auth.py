"""账号路由：注册、登录、查看当前登录用户。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.auth import AccountResponse, LoginRequest, RegisterRequest, TokenResponse
from app.packages.drive.core.dependencies import get_current_active_user, get_db
from app.packages.drive.core.responses import create_response
from app.packages.drive.models.user import User
from app.packages.drive.services.auth_service import account_payload, auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AccountResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    return auth_service.register_user(db, **payload.model_dump())


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """用户名密码正确时签发 Bearer 令牌，令牌同时出现在 ``meta`` 与 ``X-Access-Token``。"""
    return auth_service.login(db, username=payload.username, password=payload.password)


@router.get("/me", response_model=AccountResponse)
def whoami(current_user: User = Depends(get_current_active_user)):
    return create_response("获取成功", account_payload(current_user))
