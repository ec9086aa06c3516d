"""FileEntry CRUD。"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.packages.drive.crud.base import CRUDBase, backend_call
from app.packages.drive.models.file_entry import FileEntry


class CRUDFileEntry(CRUDBase[FileEntry]):
    def list_children(
        self, db: Session, *, user_id: int, parent_id: Optional[str], archived: bool = False
    ) -> List[FileEntry]:
        return self.select(
            db,
            user_id=user_id,
            filters={"parent_folder_id": parent_id, "is_archived": archived},
        )

    def search_by_name(self, db: Session, *, user_id: int, keyword: str) -> List[FileEntry]:
        with backend_call(db, "search file_entries"):
            return (
                self.query(db, user_id=user_id)
                .filter(FileEntry.is_archived.is_(False))
                .filter(func.lower(FileEntry.name).contains(keyword.lower(), autoescape=True))
                .order_by(FileEntry.is_folder.desc(), func.lower(FileEntry.name).asc())
                .all()
            )

    def list_recent_files(self, db: Session, *, user_id: int, limit: int) -> List[FileEntry]:
        return self.select(
            db,
            user_id=user_id,
            filters={"is_folder": False, "is_archived": False},
            order=(FileEntry.update_time.desc(), FileEntry.id.asc()),
            limit=limit,
        )

    def clear_category(self, db: Session, *, user_id: int, category_id: str) -> int:
        with backend_call(db, "clear file_entries.category_id"):
            return (
                self.query(db, user_id=user_id)
                .filter(FileEntry.category_id == category_id)
                .update({FileEntry.category_id: None}, synchronize_session=False)
            )


file_entry_crud = CRUDFileEntry(FileEntry)
