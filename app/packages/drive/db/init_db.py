"""启动时建表，并保证存在一个可登录的默认账号。"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.packages.drive.core import constants
from app.packages.drive.core.security import get_password_hash
from app.packages.drive.db import session as db_session
from app.packages.drive.models import FileCategory, FileEntry, ShareLink, User  # noqa: F401
from app.packages.drive.models.base import Base

logger = logging.getLogger("app")


def ensure_default_account(session: Session) -> bool:
    """默认账号不存在时创建之；返回是否新建。"""
    exists = session.scalar(select(User.id).where(User.username == constants.DEFAULT_ADMIN_USERNAME))
    if exists is not None:
        return False
    session.add(
        User(
            username=constants.DEFAULT_ADMIN_USERNAME,
            hashed_password=get_password_hash(constants.DEFAULT_ADMIN_PASSWORD),
            nickname=constants.DEFAULT_ADMIN_NICKNAME,
            is_active=True,
        )
    )
    return True


def init_db() -> None:
    Base.metadata.create_all(bind=db_session.engine)

    with db_session.SessionLocal() as session:
        try:
            created = ensure_default_account(session)
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("database bootstrap failed")
            raise
    if created:
        logger.info("default account '%s' created", constants.DEFAULT_ADMIN_USERNAME)
