"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.drive.models.file_category import FileCategory
from app.packages.drive.models.file_entry import FileEntry
from app.packages.drive.models.share_link import ShareLink
from app.packages.drive.models.user import User

__all__ = [
    "FileCategory",
    "FileEntry",
    "ShareLink",
    "User",
]
