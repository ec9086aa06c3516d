"""用户 CRUD。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.drive.crud.base import CRUDBase, backend_call
from app.packages.drive.models.user import User


class CRUDUser(CRUDBase[User]):
    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        """根据唯一用户名获取用户实例。"""
        with backend_call(db, "get users by username"):
            return self.query(db).filter(User.username == username).first()


user_crud = CRUDUser(User)
