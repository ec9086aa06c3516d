"""本地存储的公开访问路由：为 ``LocalBackend`` 生成的公开地址提供文件内容。"""

from fastapi import APIRouter

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.enums import StorageTypeEnum
from app.packages.drive.core.exceptions import NotFound
from app.packages.drive.services.file_service import file_service

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/{bucket}/{path:path}")
def serve_object(bucket: str, path: str):
    if (get_settings().storage_type or "").upper() != StorageTypeEnum.LOCAL.value:
        raise NotFound("文件不存在")
    return file_service.storage.open(bucket=bucket, path=path)
