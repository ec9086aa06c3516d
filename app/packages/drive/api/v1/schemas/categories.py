"""文件分类的请求/响应模型。"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    create_time: Optional[datetime] = None


class CategoryCreateBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=64)
    color: Optional[str] = Field(None, max_length=32)


class CategoryUpdateBody(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=64)
    color: Optional[str] = Field(None, max_length=32)


CategoryResponse = ResponseEnvelope[CategoryOut]
CategoryListResponse = ResponseEnvelope[List[CategoryOut]]
CategoryMutationResponse = ResponseEnvelope[Any]
