"""分享链接签发与解析。

令牌只在签发时生成一次；有效性在每次解析时根据 ``expires_at`` 重新判断，
不缓存判定结果。过期与不存在对调用方给出的文案完全一致。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.constants import SHARE_RESOLVE_PATH
from app.packages.drive.core.enums import AccessLevel, ShareStatus
from app.packages.drive.core.exceptions import Expired, ValidationError
from app.packages.drive.core.logger import logger
from app.packages.drive.core.security import generate_share_token
from app.packages.drive.core.timezone import as_utc, utc_now
from app.packages.drive.crud.file_entry import file_entry_crud
from app.packages.drive.crud.share_link import share_link_crud
from app.packages.drive.models.file_entry import FileEntry
from app.packages.drive.models.share_link import ShareLink
from app.packages.drive.services.tree_index import FileTreeIndex, tree_index


@dataclass(frozen=True)
class ShareLinkIssued:
    link: ShareLink
    share_url: str

    @property
    def token(self) -> str:
        return self.link.token


@dataclass(frozen=True)
class ShareResolution:
    status: ShareStatus
    entry: Optional[FileEntry] = None
    access_level: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def is_valid(self) -> bool:
        return self.status == ShareStatus.VALID

    def require_valid(self) -> "ShareResolution":
        # 过期与不存在使用同一文案，不透露令牌是否存在过
        if not self.is_valid:
            raise Expired()
        return self


def build_share_url(token: str) -> str:
    origin = get_settings().public_origin.rstrip("/")
    return f"{origin}{SHARE_RESOLVE_PATH}?{urlencode({'token': token})}"


class ShareService:
    def __init__(self, index: FileTreeIndex = tree_index) -> None:
        self.index = index

    def create_share_link(
        self,
        db: Session,
        *,
        user_id: int,
        file_id: str,
        access_level: AccessLevel | str = AccessLevel.VIEW,
        expires_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> ShareLinkIssued:
        try:
            level = AccessLevel(access_level)
        except ValueError as exc:
            raise ValidationError("访问权限只能是 view 或 edit") from exc
        expiry = as_utc(expires_at)
        if expiry is not None and expiry <= as_utc(now or utc_now()):
            raise ValidationError("过期时间必须晚于当前时间")

        entry = self.index.get_entry(db, user_id=user_id, entry_id=file_id)

        link = share_link_crud.create(
            db,
            {
                "file_id": entry.id,
                "access_level": level.value,
                "token": generate_share_token(),
                "expires_at": expiry,
                "shared_by": user_id,
            },
        )
        logger.info("share link issued (%s)", level.value, extra={"entry_id": entry.id, "user_id": user_id})
        return ShareLinkIssued(link=link, share_url=build_share_url(link.token))

    def resolve_share_link(self, db: Session, token: Optional[str], *, now: Optional[datetime] = None) -> ShareResolution:
        """解析令牌；不抛出异常，结果通过 ``status`` 区分。"""
        token = (token or "").strip()
        if not token:
            return ShareResolution(status=ShareStatus.NOT_FOUND)
        link = share_link_crud.get_by_token(db, token)
        if link is None:
            return ShareResolution(status=ShareStatus.NOT_FOUND)
        expiry = as_utc(link.expires_at)
        if expiry is not None and as_utc(now or utc_now()) >= expiry:
            return ShareResolution(status=ShareStatus.EXPIRED, expires_at=expiry)
        entry = file_entry_crud.get(db, link.file_id)
        if entry is None:
            logger.warning("share link points at a missing file", extra={"entry_id": link.file_id})
            return ShareResolution(status=ShareStatus.NOT_FOUND)
        return ShareResolution(
            status=ShareStatus.VALID,
            entry=entry,
            access_level=link.access_level,
            expires_at=expiry,
        )


share_service = ShareService()
