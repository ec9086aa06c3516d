"""文件分类模型：独立于目录树的用户自定义分组，名称不要求唯一。"""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.models.base import Base, OwnedByUserMixin, TimestampMixin, new_id


class FileCategory(OwnedByUserMixin, TimestampMixin, Base):
    __tablename__ = "file_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
