"""多选与批量操作的请求模型。"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope
from app.packages.drive.core.enums import BulkAction, SortDirection, SortOption


class NavigateBody(BaseModel):
    folderId: Optional[str] = None
    sortBy: Optional[SortOption] = None
    direction: Optional[SortDirection] = None


class ToggleBody(BaseModel):
    id: str = Field(..., min_length=1)


class SelectAllBody(BaseModel):
    ids: Optional[List[str]] = None  # 为空时全选当前列表


class BulkBody(BaseModel):
    action: BulkAction
    confirm: bool = False


SelectionResponse = ResponseEnvelope[Any]
