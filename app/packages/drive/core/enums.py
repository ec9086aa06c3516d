"""枚举定义：约束排序、视图、分享权限与批量操作的可选值。"""

from enum import Enum


class SortOption(str, Enum):
    NAME = "name"
    DATE = "date"
    SIZE = "size"
    TYPE = "type"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FileView(str, Enum):
    """文件管理器侧边栏中的扁平视图。"""

    STARRED = "starred"
    RECENT = "recent"
    ARCHIVED = "archived"


class AccessLevel(str, Enum):
    VIEW = "view"
    EDIT = "edit"


class BulkAction(str, Enum):
    STAR = "star"
    UNSTAR = "unstar"
    ARCHIVE = "archive"
    UNARCHIVE = "unarchive"
    DELETE = "delete"


class ShareStatus(str, Enum):
    """分享令牌解析结果。"""

    VALID = "valid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


class StorageTypeEnum(str, Enum):
    LOCAL = "LOCAL"
    S3 = "S3"
