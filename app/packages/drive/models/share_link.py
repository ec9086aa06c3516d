"""分享链接模型：不依赖所有者会话即可访问单个文件的凭证。

有效性在每次解析时重新判定（expires_at 为空或晚于当前时间），不缓存；
没有提前撤销的流程，过期是唯一的终止方式。
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.core.enums import AccessLevel
from app.packages.drive.models.base import Base, new_id


class ShareLink(Base):
    __tablename__ = "share_links"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    file_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("file_entries.id", ondelete="CASCADE"), index=True
    )
    access_level: Mapped[str] = mapped_column(String(8), default=AccessLevel.VIEW.value)
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    shared_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    create_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
