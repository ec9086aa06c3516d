"""CRUD 基类：记录存储的统一入口（select/get/insert/update/delete）。

所有数据库异常都会在此回滚并转换为 ``BackendUnavailable``，业务层不直接接触 SQLAlchemy 异常。
查询在传入 ``user_id`` 时自动按归属用户隔离。
"""

from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.packages.drive.core.exceptions import BackendUnavailable
from app.packages.drive.core.logger import logger
from app.packages.drive.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


@contextmanager
def backend_call(db: Session, operation: str) -> Iterator[None]:
    """包裹一次记录存储调用：失败时回滚事务并抛出可重试的业务异常。"""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("record store %s failed: %s", operation, exc)
        raise BackendUnavailable() from exc


class CRUDBase(Generic[ModelType]):
    """封装常见的查询、创建与保存逻辑，减少重复代码。"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def query(self, db: Session, *, user_id: Optional[int] = None) -> Query:
        query = db.query(self.model)
        if user_id is not None and hasattr(self.model, "user_id"):
            query = query.filter(self.model.user_id == user_id)
        return query

    def get(self, db: Session, id: Any, *, user_id: Optional[int] = None) -> Optional[ModelType]:
        with backend_call(db, f"get {self.model.__tablename__}"):
            return self.query(db, user_id=user_id).filter(self.model.id == id).first()

    def select(
        self,
        db: Session,
        *,
        user_id: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
        order: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> List[ModelType]:
        """按字段等值过滤并排序；值为 ``None`` 时匹配 IS NULL。"""
        with backend_call(db, f"select {self.model.__tablename__}"):
            query = self.query(db, user_id=user_id)
            for field, value in (filters or {}).items():
                column = getattr(self.model, field)
                query = query.filter(column.is_(None) if value is None else column == value)
            if order:
                query = query.order_by(*order)
            if limit is not None:
                query = query.limit(limit)
            return query.all()

    def create(self, db: Session, obj_in: Dict[str, Any], *, auto_commit: bool = True) -> ModelType:
        with backend_call(db, f"insert {self.model.__tablename__}"):
            db_obj = self.model(**obj_in)
            db.add(db_obj)
            if auto_commit:
                db.commit()
                db.refresh(db_obj)
            else:
                db.flush()
            return db_obj

    def update(
        self, db: Session, db_obj: ModelType, patch: Dict[str, Any], *, auto_commit: bool = True
    ) -> ModelType:
        with backend_call(db, f"update {self.model.__tablename__}"):
            for field, value in patch.items():
                setattr(db_obj, field, value)
            db.add(db_obj)
            if auto_commit:
                db.commit()
                db.refresh(db_obj)
            return db_obj

    def hard_delete(self, db: Session, db_obj: ModelType, *, auto_commit: bool = True) -> None:
        """物理删除行。"""
        with backend_call(db, f"delete {self.model.__tablename__}"):
            db.delete(db_obj)
            if auto_commit:
                db.commit()
