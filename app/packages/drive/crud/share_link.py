"""ShareLink CRUD。"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.packages.drive.crud.base import CRUDBase, backend_call
from app.packages.drive.models.share_link import ShareLink


class CRUDShareLink(CRUDBase[ShareLink]):
    def get_by_token(self, db: Session, token: str) -> Optional[ShareLink]:
        with backend_call(db, "get share_links by token"):
            return self.query(db).filter(ShareLink.token == token).first()

    def delete_for_files(self, db: Session, file_ids: Iterable[str], *, auto_commit: bool = True) -> int:
        ids = list(file_ids)
        if not ids:
            return 0
        with backend_call(db, "delete share_links by file"):
            removed = (
                self.query(db)
                .filter(ShareLink.file_id.in_(ids))
                .delete(synchronize_session=False)
            )
            if auto_commit:
                db.commit()
            return removed


share_link_crud = CRUDShareLink(ShareLink)
