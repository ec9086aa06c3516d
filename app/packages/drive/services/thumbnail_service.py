"""缩略图服务：上传图片时生成等比缩放的缩略图。

缩略图对象放在 ``thumbnails/<entry_id>.<fmt>``，与原文件同桶。
"""

from __future__ import annotations

import io
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError, features

from app.packages.drive.core.constants import THUMBNAIL_STORAGE_FOLDER

# SVG 等矢量格式无法用 Pillow 解码
_RASTER_MIME_PREFIXES = ("image/jpeg", "image/png", "image/gif", "image/bmp", "image/webp", "image/tiff")


class ThumbnailService:
    DEFAULT_QUALITY = 75
    MAX_ORIG_BYTES = 20 * 1024 * 1024

    def supports(self, mime_type: Optional[str], size: int) -> bool:
        mime = (mime_type or "").lower()
        return mime.startswith(_RASTER_MIME_PREFIXES) and 0 < size <= self.MAX_ORIG_BYTES

    def storage_path(self, entry_id: str) -> str:
        return f"{THUMBNAIL_STORAGE_FOLDER}/{entry_id}.{self._effective_format()}"

    def make_thumbnail(self, data: bytes, *, width: int) -> Tuple[bytes, str]:
        """返回 (缩略图字节, MIME)；无法识别的图片抛出 ``ValueError``。"""
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f"无法识别的图片: {exc}") from exc
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGB")
        img.thumbnail((width, width), Image.LANCZOS)

        fmt = self._effective_format()
        out = io.BytesIO()
        if fmt == "webp":
            img.save(out, format="WEBP", quality=self.DEFAULT_QUALITY, method=6)
            return out.getvalue(), "image/webp"
        img.save(out, format="PNG", optimize=True)
        return out.getvalue(), "image/png"

    @staticmethod
    def _effective_format() -> str:
        # 运行环境未启用 webp 编码时回退到 png
        return "webp" if features.check("webp") else "png"


thumbnail_service = ThumbnailService()
