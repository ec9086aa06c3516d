"""FileCategory CRUD。"""

from __future__ import annotations

from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.drive.crud.base import CRUDBase
from app.packages.drive.models.file_category import FileCategory


class CRUDFileCategory(CRUDBase[FileCategory]):
    def list_for_user(self, db: Session, *, user_id: int) -> List[FileCategory]:
        return self.select(
            db, user_id=user_id, order=(func.lower(FileCategory.name).asc(), FileCategory.id.asc())
        )


file_category_crud = CRUDFileCategory(FileCategory)
