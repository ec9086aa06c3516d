"""分享链接路由：签发需要登录，解析与下载不需要。"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.files import serialize_entry
from app.packages.drive.api.v1.schemas.shares import ShareCreateBody, ShareLinkResponse, ShareResolveResponse
from app.packages.drive.core.dependencies import get_current_active_user, get_db
from app.packages.drive.core.responses import create_response
from app.packages.drive.models.user import User
from app.packages.drive.services.file_service import file_service
from app.packages.drive.services.share_service import share_service

router = APIRouter(tags=["shares"])


@router.post("/files/{entry_id}/shares", response_model=ShareLinkResponse)
def create_share_link(
    entry_id: str,
    payload: ShareCreateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    issued = share_service.create_share_link(
        db,
        user_id=current_user.id,
        file_id=entry_id,
        access_level=payload.accessLevel,
        expires_at=payload.expiresAt,
    )
    return create_response(
        "分享链接已生成",
        {
            "token": issued.token,
            "shareUrl": issued.share_url,
            "accessLevel": issued.link.access_level,
            "expiresAt": issued.link.expires_at,
        },
    )


@router.get("/shares/resolve", response_model=ShareResolveResponse)
def resolve_share_link(token: Optional[str] = Query(None), db: Session = Depends(get_db)):
    resolution = share_service.resolve_share_link(db, token).require_valid()
    return create_response(
        "获取成功",
        {"entry": serialize_entry(resolution.entry), "accessLevel": resolution.access_level},
    )


@router.get("/shares/download")
def download_shared(token: Optional[str] = Query(None), db: Session = Depends(get_db)):
    resolution = share_service.resolve_share_link(db, token).require_valid()
    return file_service.stream(resolution.entry)
