"""分享链接的请求/响应模型。"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope
from app.packages.drive.core.enums import AccessLevel


class ShareCreateBody(BaseModel):
    accessLevel: AccessLevel = AccessLevel.VIEW
    expiresAt: Optional[datetime] = None


class ShareLinkOut(BaseModel):
    token: str
    shareUrl: str
    accessLevel: str
    expiresAt: Optional[datetime] = None


ShareLinkResponse = ResponseEnvelope[ShareLinkOut]
ShareResolveResponse = ResponseEnvelope[Any]
