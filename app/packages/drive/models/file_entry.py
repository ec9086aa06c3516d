"""文件条目模型：文件与文件夹共用一张表，以 ``is_folder`` 区分。

存储规则：
- parent_folder_id 为空表示位于根目录；父指针不得成环（由移动操作保证）；
- 文件夹的 size_bytes 恒为 0，mime_type/storage_path/public_url 为空字符串；
- is_archived 为真的条目不出现在默认列表中，只能通过“归档”视图查看；
- shared_with 保存被授权查看者的标识列表（JSON 数组，去重）；
- 删除为物理删除，不保留软删除标记。
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.drive.models.base import Base, OwnedByUserMixin, TimestampMixin, new_id


class FileEntry(OwnedByUserMixin, TimestampMixin, Base):
    __tablename__ = "file_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mime_type: Mapped[str] = mapped_column(String(255), default="")
    size_bytes: Mapped[int] = mapped_column(BigInteger, default=0)
    storage_path: Mapped[str] = mapped_column(String(1024), default="")
    public_url: Mapped[str] = mapped_column(String(2048), default="")
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("file_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # 不加外键约束：记录存储本身不保证树结构，完整性由业务层维护
    parent_folder_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    is_folder: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_starred: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    shared_with: Mapped[list] = mapped_column(JSON, default=list)
    last_accessed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
