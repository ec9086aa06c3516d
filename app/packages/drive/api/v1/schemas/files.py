"""文件管理 - 条目查询与变更的请求/响应模型。"""

from datetime import datetime
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope
from app.packages.drive.core.timezone import to_local
from app.packages.drive.models.file_entry import FileEntry


class FileEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    mime_type: str = ""
    size_bytes: int = 0
    public_url: str = ""
    thumbnail_url: Optional[str] = None
    category_id: Optional[str] = None
    parent_folder_id: Optional[str] = None
    is_folder: bool
    is_starred: bool
    is_archived: bool
    shared_with: List[str] = Field(default_factory=list)
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None

    @field_serializer("create_time", "update_time", "last_accessed_at")
    def _localize(self, value: Optional[datetime]) -> Optional[str]:
        local = to_local(value)
        return local.isoformat() if local else None


def serialize_entry(entry: FileEntry) -> dict:
    return FileEntryOut.model_validate(entry).model_dump(mode="json")


def serialize_entries(entries: Iterable[FileEntry]) -> List[dict]:
    return [serialize_entry(entry) for entry in entries]


class FolderCreateBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    parentId: Optional[str] = None


class RenameBody(BaseModel):
    name: str = Field(..., max_length=255)


class MoveBody(BaseModel):
    parentId: Optional[str] = None  # None 表示移动到根目录


class FlagBody(BaseModel):
    value: bool


class DetailsPatchBody(BaseModel):
    """只处理显式传入的字段；未传入的字段保持不变。"""

    description: Optional[str] = None
    categoryId: Optional[str] = None
    sharedWith: Optional[List[str]] = None

    def to_patch(self) -> dict:
        mapping = {"description": "description", "categoryId": "category_id", "sharedWith": "shared_with"}
        return {mapping[key]: value for key, value in self.model_dump(exclude_unset=True).items()}


FileEntryResponse = ResponseEnvelope[FileEntryOut]
FilesListResponse = ResponseEnvelope[List[FileEntryOut]]
FilesMutationResponse = ResponseEnvelope[Any]
