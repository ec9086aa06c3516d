"""存储网关：统一封装本地文件系统与 S3 的对象操作。

对外契约只有四个动作：按桶与路径上传、生成公开地址、删除、读取。
任何 I/O 或客户端错误都转换为 ``BackendUnavailable``；路径越界转换为 ``ValidationError``。
"""

from __future__ import annotations

import io
import mimetypes
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import status
from fastapi.responses import FileResponse, RedirectResponse

from app.packages.drive.core.config import Settings, get_settings
from app.packages.drive.core.enums import StorageTypeEnum
from app.packages.drive.core.exceptions import (
    AppException,
    BackendUnavailable,
    NotFound,
    ValidationError,
)
from app.packages.drive.core.logger import logger


def _norm_mime(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


def _norm_key(path: str) -> str:
    key = (path or "").strip().lstrip("/")
    if not key:
        raise ValidationError("存储路径不能为空")
    return key


class StorageBackend:
    """存储网关接口。"""

    def upload(self, *, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        raise NotImplementedError

    def get_public_url(self, *, bucket: str, path: str) -> str:
        raise NotImplementedError

    def remove(self, *, bucket: str, path: str) -> bool:
        raise NotImplementedError

    def open(self, *, bucket: str, path: str, filename: Optional[str] = None):  # FileResponse | RedirectResponse
        raise NotImplementedError


# ------------------------------------------
# 本地文件系统实现
# ------------------------------------------


class LocalBackend(StorageBackend):
    """对象落在 ``<root>/<bucket>/<path>``，公开地址由本服务的 /storage 路由提供。"""

    def __init__(self, root: str | Path, *, public_base_url: str):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:  # pragma: no cover - 极端情况下可能失败
            raise AppException(f"无法创建本地存储根目录: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR) from exc

    # 统一的安全路径拼接，防止路径遍历
    def _resolve(self, bucket: str, path: str) -> Path:
        base = (self.root / _norm_key(bucket)).resolve()
        candidate = (base / _norm_key(path)).resolve()
        try:
            base.relative_to(self.root)
            candidate.relative_to(base)
        except ValueError as exc:
            raise ValidationError("非法路径: 越权访问") from exc
        return candidate

    def upload(self, *, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(bucket, path)
        if target.exists():
            raise ValidationError("上传失败：对象已存在")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            logger.exception("local upload failed: %s/%s", bucket, path)
            raise BackendUnavailable("文件上传失败，请稍后重试") from exc
        return _norm_key(path)

    def get_public_url(self, *, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{quote(_norm_key(bucket))}/{quote(_norm_key(path))}"

    def remove(self, *, bucket: str, path: str) -> bool:
        target = self._resolve(bucket, path)
        if not target.exists():
            return False
        try:
            target.unlink()
        except OSError as exc:
            logger.exception("local remove failed: %s/%s", bucket, path)
            raise BackendUnavailable("文件删除失败，请稍后重试") from exc
        return True

    def open(self, *, bucket: str, path: str, filename: Optional[str] = None):
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise NotFound("文件不存在")
        return FileResponse(
            path=str(target),
            media_type=_norm_mime(filename or target.name),
            filename=filename,
        )


# ------------------------------------------
# S3 实现（boto3）
# ------------------------------------------


class S3Backend(StorageBackend):
    """桶名直接对应 S3 Bucket；公开地址优先使用自定义域名。"""

    def __init__(
        self,
        *,
        region: str,
        access_key_id: str,
        secret_access_key: str,
        endpoint_url: Optional[str] = None,
        custom_domain: Optional[str] = None,
    ):
        try:
            import boto3  # type: ignore
            from botocore.exceptions import BotoCoreError, ClientError  # type: ignore
        except ImportError as exc:
            raise AppException(
                "S3 功能不可用：缺少依赖 boto3，请在后端安装后重试",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            ) from exc

        self.region = region
        self.endpoint_url = endpoint_url
        self.custom_domain = (custom_domain or "").rstrip("/") or None
        self._errors = (BotoCoreError, ClientError)
        self._client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
        )

    def upload(self, *, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        key = _norm_key(path)
        try:
            self._client.upload_fileobj(
                io.BytesIO(content),
                bucket,
                key,
                ExtraArgs={"ContentType": content_type or _norm_mime(key)},
            )
        except self._errors as exc:
            logger.exception("S3 upload failed: %s/%s", bucket, key)
            raise BackendUnavailable("文件上传失败，请稍后重试") from exc
        return key

    def get_public_url(self, *, bucket: str, path: str) -> str:
        key = quote(_norm_key(path))
        if self.custom_domain:
            return f"{self.custom_domain}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{bucket}/{key}"
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{key}"

    def remove(self, *, bucket: str, path: str) -> bool:
        key = _norm_key(path)
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except self._errors as exc:
            logger.exception("S3 remove failed: %s/%s", bucket, key)
            raise BackendUnavailable("文件删除失败，请稍后重试") from exc
        return True

    def open(self, *, bucket: str, path: str, filename: Optional[str] = None):
        params = {"Bucket": bucket, "Key": _norm_key(path)}
        if filename:
            params["ResponseContentDisposition"] = f"attachment; filename=\"{quote(filename)}\""
        try:
            url = self._client.generate_presigned_url("get_object", Params=params, ExpiresIn=300)
        except self._errors as exc:
            raise BackendUnavailable("生成下载地址失败，请稍后重试") from exc
        return RedirectResponse(url)


def build_backend(settings: Optional[Settings] = None) -> StorageBackend:
    settings = settings or get_settings()
    storage_type = (settings.storage_type or "").upper()
    if storage_type == StorageTypeEnum.LOCAL.value:
        return LocalBackend(
            settings.storage_root_path,
            public_base_url=f"{settings.public_origin.rstrip('/')}{settings.api_v1_str}/storage",
        )
    if storage_type == StorageTypeEnum.S3.value:
        if not (settings.s3_region and settings.s3_access_key_id and settings.s3_secret_access_key):
            raise AppException("S3 配置不完整", status.HTTP_500_INTERNAL_SERVER_ERROR)
        return S3Backend(
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
            custom_domain=settings.s3_custom_domain,
        )
    raise AppException("不支持的存储类型", status.HTTP_500_INTERNAL_SERVER_ERROR)
