"""文件夹导航：面包屑与“移动到”目录树。"""

from typing import List

from pydantic import BaseModel

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope


class CrumbOut(BaseModel):
    id: str
    name: str


BreadcrumbResponse = ResponseEnvelope[List[CrumbOut]]
FolderTreeResponse = ResponseEnvelope[List[CrumbOut]]
