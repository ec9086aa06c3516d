"""账号注册、登录与当前用户的数据结构。"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope


class Credentials(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="登录名，全局唯一")
    password: str = Field(..., min_length=6, max_length=128)


class RegisterRequest(Credentials):
    nickname: Optional[str] = Field(None, max_length=100, description="留空时使用用户名")


class LoginRequest(Credentials):
    pass


class AccountOut(BaseModel):
    user_id: int
    username: str
    nickname: Optional[str] = None


class IssuedToken(BaseModel):
    access_token: str
    token_type: Literal["bearer"]


AccountResponse = ResponseEnvelope[AccountOut]
TokenResponse = ResponseEnvelope[IssuedToken]
