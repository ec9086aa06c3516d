"""文件分类服务：分类与目录树相互独立，删除分类只解除文件关联，不删除文件。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.exceptions import NotFound, ValidationError
from app.packages.drive.core.logger import logger
from app.packages.drive.crud.base import backend_call
from app.packages.drive.crud.file_category import file_category_crud
from app.packages.drive.crud.file_entry import file_entry_crud
from app.packages.drive.models.file_category import FileCategory

_EDITABLE = ("name", "description", "icon", "color")


class CategoryService:
    def list_categories(self, db: Session, *, user_id: int) -> List[FileCategory]:
        return file_category_crud.list_for_user(db, user_id=user_id)

    def get_category(self, db: Session, *, user_id: int, category_id: str) -> FileCategory:
        category = file_category_crud.get(db, category_id, user_id=user_id)
        if category is None:
            raise NotFound("分类不存在或已被删除")
        return category

    def create_category(
        self,
        db: Session,
        *,
        user_id: int,
        name: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> FileCategory:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("分类名称不能为空")
        return file_category_crud.create(
            db,
            {"name": cleaned, "description": description, "icon": icon, "color": color, "user_id": user_id},
        )

    def update_category(self, db: Session, *, user_id: int, category_id: str, patch: Dict[str, Any]) -> FileCategory:
        changes = {key: value for key, value in patch.items() if key in _EDITABLE}
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("分类名称不能为空")
        category = self.get_category(db, user_id=user_id, category_id=category_id)
        if not changes:
            return category
        return file_category_crud.update(db, category, changes)

    def delete_category(self, db: Session, *, user_id: int, category_id: str) -> int:
        """删除分类并返回被解除关联的文件数。"""
        category = self.get_category(db, user_id=user_id, category_id=category_id)
        detached = file_entry_crud.clear_category(db, user_id=user_id, category_id=category.id)
        file_category_crud.hard_delete(db, category, auto_commit=False)
        with backend_call(db, "commit category delete"):
            db.commit()
        logger.info("category %s deleted, %s files detached", category_id, detached, extra={"user_id": user_id})
        return detached


category_service = CategoryService()
