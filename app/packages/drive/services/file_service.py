"""单条目变更服务：新建、上传、重命名、移动、星标、归档、删除与详情维护。

所有方法都先校验输入，再发起写操作；校验失败时记录存储保持不变。
批量操作复用这里的方法逐条执行，不另写一套逻辑。
"""

from __future__ import annotations

import uuid
from collections import deque
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.constants import ROOT_STORAGE_FOLDER
from app.packages.drive.core.enums import FileView, SortDirection, SortOption
from app.packages.drive.core.exceptions import (
    AppException,
    InvalidOperation,
    NotFound,
    ValidationError,
)
from app.packages.drive.core.logger import logger
from app.packages.drive.core.timezone import utc_now
from app.packages.drive.crud.base import backend_call
from app.packages.drive.crud.file_category import file_category_crud
from app.packages.drive.crud.file_entry import file_entry_crud
from app.packages.drive.crud.share_link import share_link_crud
from app.packages.drive.models.file_entry import FileEntry
from app.packages.drive.services.results import BestEffortOutcome, DeleteResult, UploadResult
from app.packages.drive.services.storage_backends import StorageBackend, build_backend
from app.packages.drive.services.thumbnail_service import thumbnail_service
from app.packages.drive.services.tree_index import FileTreeIndex, sort_entries, tree_index

_DETAIL_FIELDS = ("description", "category_id", "shared_with")


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("名称不能为空")
    return cleaned


def _storage_key_part(name: str) -> str:
    return name.replace("/", "_").replace("\\", "_")


def _dedupe_viewers(viewers: Iterable[Any]) -> List[str]:
    seen: List[str] = []
    for raw in viewers or []:
        viewer = str(raw).strip()
        if viewer and viewer not in seen:
            seen.append(viewer)
    return seen


class FileService:
    def __init__(
        self,
        index: FileTreeIndex = tree_index,
        storage_factory: Callable[[], StorageBackend] = build_backend,
    ) -> None:
        self.index = index
        self._storage_factory = storage_factory
        self._storage: Optional[StorageBackend] = None

    @property
    def storage(self) -> StorageBackend:
        if self._storage is None:
            self._storage = self._storage_factory()
        return self._storage

    @property
    def bucket(self) -> str:
        return get_settings().storage_bucket

    # ----------------------------
    # 新建
    # ----------------------------
    def create_folder(self, db: Session, *, user_id: int, name: str, parent_id: Optional[str] = None) -> FileEntry:
        cleaned = _clean_name(name)
        if parent_id is not None:
            self.index.get_folder(db, user_id=user_id, folder_id=parent_id)
        folder = file_entry_crud.create(
            db,
            {
                "name": cleaned,
                "is_folder": True,
                "parent_folder_id": parent_id,
                "user_id": user_id,
                "shared_with": [],
            },
        )
        logger.info("folder created", extra={"entry_id": folder.id, "user_id": user_id})
        return folder

    def upload(
        self,
        db: Session,
        *,
        user_id: int,
        name: str,
        content: bytes,
        mime_type: Optional[str] = None,
        parent_id: Optional[str] = None,
    ) -> UploadResult:
        """上传文件并登记条目；缩略图生成失败不影响上传结果。"""
        cleaned = _clean_name(name)
        if parent_id is not None:
            self.index.get_folder(db, user_id=user_id, folder_id=parent_id)

        prefix = f"folder_{parent_id}" if parent_id else ROOT_STORAGE_FOLDER
        path = f"{prefix}/{uuid.uuid4().hex}_{_storage_key_part(cleaned)}"
        mime = mime_type or "application/octet-stream"
        key = self.storage.upload(bucket=self.bucket, path=path, content=content, content_type=mime)
        public_url = self.storage.get_public_url(bucket=self.bucket, path=key)

        try:
            entry = file_entry_crud.create(
                db,
                {
                    "name": cleaned,
                    "mime_type": mime,
                    "size_bytes": len(content),
                    "storage_path": key,
                    "public_url": public_url,
                    "parent_folder_id": parent_id,
                    "user_id": user_id,
                    "shared_with": [],
                },
            )
        except AppException:
            # 登记失败时回收已上传的对象，避免产生孤儿文件
            self._remove_quietly(key)
            raise

        thumbnail = self._attach_thumbnail(db, entry, content)
        logger.info(
            "file uploaded: %s (%s bytes)", key, entry.size_bytes, extra={"entry_id": entry.id, "user_id": user_id}
        )
        return UploadResult(entry=entry, thumbnail=thumbnail)

    def _attach_thumbnail(self, db: Session, entry: FileEntry, content: bytes) -> BestEffortOutcome:
        outcome = BestEffortOutcome()
        if not thumbnail_service.supports(entry.mime_type, entry.size_bytes):
            return outcome
        outcome.attempted = True
        try:
            data, mime = thumbnail_service.make_thumbnail(content, width=get_settings().thumbnail_width)
        except ValueError as exc:
            outcome.record_failure(entry.id)
            outcome.message = str(exc)
            logger.warning("thumbnail skipped: %s", exc, extra={"entry_id": entry.id})
            return outcome
        try:
            key = self.storage.upload(
                bucket=self.bucket,
                path=thumbnail_service.storage_path(entry.id),
                content=data,
                content_type=mime,
            )
            url = self.storage.get_public_url(bucket=self.bucket, path=key)
            file_entry_crud.update(db, entry, {"thumbnail_url": url})
        except AppException as exc:
            outcome.record_failure(entry.id)
            outcome.message = exc.msg
            logger.warning("thumbnail upload failed: %s", exc.msg, extra={"entry_id": entry.id})
        return outcome

    # ----------------------------
    # 单条目变更
    # ----------------------------
    def rename(self, db: Session, *, user_id: int, entry_id: str, new_name: str) -> FileEntry:
        cleaned = _clean_name(new_name)
        entry = self.index.get_entry(db, user_id=user_id, entry_id=entry_id)
        if entry.name == cleaned:
            return entry
        return file_entry_crud.update(db, entry, {"name": cleaned})

    def move(self, db: Session, *, user_id: int, entry_id: str, destination_id: Optional[str]) -> FileEntry:
        """移动到目标文件夹（``None`` 为根目录）。

        写入前沿目标的祖先链检查：文件夹不能移动到自身或其子孙目录下。
        """
        entry = self.index.get_entry(db, user_id=user_id, entry_id=entry_id)
        if destination_id is not None:
            if destination_id == entry.id:
                raise InvalidOperation("不能将条目移动到其自身中")
            self.index.get_folder(db, user_id=user_id, folder_id=destination_id)
            if entry.is_folder and self.index.is_same_or_descendant(
                db, user_id=user_id, candidate_id=destination_id, ancestor_id=entry.id
            ):
                raise InvalidOperation("不能将文件夹移动到其自身或子目录中")
        if entry.parent_folder_id == destination_id:
            return entry
        moved = file_entry_crud.update(db, entry, {"parent_folder_id": destination_id})
        logger.info("entry moved to %s", destination_id or "root", extra={"entry_id": entry_id, "user_id": user_id})
        return moved

    def toggle_star(self, db: Session, *, user_id: int, entry_id: str, value: bool) -> FileEntry:
        entry = self.index.get_entry(db, user_id=user_id, entry_id=entry_id)
        return file_entry_crud.update(db, entry, {"is_starred": bool(value)})

    def toggle_archive(self, db: Session, *, user_id: int, entry_id: str, value: bool) -> FileEntry:
        entry = self.index.get_entry(db, user_id=user_id, entry_id=entry_id)
        return file_entry_crud.update(db, entry, {"is_archived": bool(value)})

    def update_details(self, db: Session, *, user_id: int, entry_id: str, patch: Dict[str, Any]) -> FileEntry:
        """只更新传入的字段：描述、分类、可查看者列表。"""
        unknown = set(patch) - set(_DETAIL_FIELDS)
        if unknown:
            raise ValidationError(f"不支持修改的字段: {', '.join(sorted(unknown))}")
        entry = self.index.get_entry(db, user_id=user_id, entry_id=entry_id)
        changes: Dict[str, Any] = {}
        if "description" in patch:
            changes["description"] = (patch["description"] or "").strip() or None
        if "category_id" in patch:
            category_id = patch["category_id"]
            if category_id is not None and file_category_crud.get(db, category_id, user_id=user_id) is None:
                raise NotFound("分类不存在或已被删除")
            changes["category_id"] = category_id
        if "shared_with" in patch:
            changes["shared_with"] = _dedupe_viewers(patch["shared_with"])
        if not changes:
            return entry
        return file_entry_crud.update(db, entry, changes)

    def delete(self, db: Session, *, user_id: int, entry_id: str, confirm: bool = False) -> DeleteResult:
        """删除条目；文件夹连同整棵子树一起删除。

        记录删除在一个事务中完成；存储对象的清理在提交之后尽力执行，
        清理失败只体现在 ``storage_cleanup`` 中，不影响删除结果。
        """
        if not confirm:
            raise ValidationError("删除操作需要确认")
        root = self.index.get_entry(db, user_id=user_id, entry_id=entry_id)
        doomed = self._collect_subtree(db, user_id=user_id, root=root)
        doomed_ids = [item.id for item in doomed]
        storage_keys = [item.storage_path for item in doomed if not item.is_folder and item.storage_path]
        thumbnail_keys = [thumbnail_service.storage_path(item.id) for item in doomed if item.thumbnail_url]

        share_link_crud.delete_for_files(db, doomed_ids, auto_commit=False)
        for item in reversed(doomed):
            file_entry_crud.hard_delete(db, item, auto_commit=False)
        with backend_call(db, "commit cascade delete"):
            db.commit()
        logger.info(
            "deleted %s entries", len(doomed_ids), extra={"entry_id": entry_id, "user_id": user_id}
        )

        cleanup = BestEffortOutcome(attempted=bool(storage_keys or thumbnail_keys))
        for key in storage_keys + thumbnail_keys:
            try:
                self.storage.remove(bucket=self.bucket, path=key)
            except AppException as exc:
                cleanup.record_failure(key)
                cleanup.message = exc.msg
                logger.warning("storage cleanup failed for %s: %s", key, exc.msg, extra={"entry_id": entry_id})
        return DeleteResult(deleted_ids=doomed_ids, storage_cleanup=cleanup)

    def _collect_subtree(self, db: Session, *, user_id: int, root: FileEntry) -> List[FileEntry]:
        """广度优先收集子树（含归档条目）；已访问集合防止脏数据中的环导致死循环。"""
        collected: List[FileEntry] = [root]
        visited = {root.id}
        queue = deque([root] if root.is_folder else [])
        while queue:
            folder = queue.popleft()
            children = file_entry_crud.select(db, user_id=user_id, filters={"parent_folder_id": folder.id})
            for child in children:
                if child.id in visited:
                    continue
                visited.add(child.id)
                collected.append(child)
                if child.is_folder:
                    queue.append(child)
        return collected

    def _remove_quietly(self, key: str) -> None:
        try:
            self.storage.remove(bucket=self.bucket, path=key)
        except AppException as exc:
            logger.warning("orphan object left in storage: %s (%s)", key, exc.msg)

    # ----------------------------
    # 查询与访问
    # ----------------------------
    def list_view(
        self,
        db: Session,
        *,
        user_id: int,
        view: FileView | str,
        sort_by: SortOption | str = SortOption.NAME,
        direction: SortDirection | str = SortDirection.ASC,
        limit: Optional[int] = None,
    ) -> List[FileEntry]:
        """平铺视图：星标、最近使用（仅文件，按更新时间倒序）与归档。"""
        view = FileView(view)
        if view == FileView.RECENT:
            return file_entry_crud.list_recent_files(
                db, user_id=user_id, limit=limit or get_settings().recent_files_limit
            )
        if view == FileView.STARRED:
            rows = file_entry_crud.select(db, user_id=user_id, filters={"is_starred": True, "is_archived": False})
        else:
            rows = file_entry_crud.select(db, user_id=user_id, filters={"is_archived": True})
        ordered = sort_entries(rows, sort_by, direction)
        return ordered[:limit] if limit else ordered

    def search(self, db: Session, *, user_id: int, keyword: Optional[str]) -> List[FileEntry]:
        keyword = (keyword or "").strip()
        if not keyword:
            return []
        return file_entry_crud.search_by_name(db, user_id=user_id, keyword=keyword)

    def open_entry(self, db: Session, *, user_id: int, entry_id: str) -> FileEntry:
        """打开文件：记录最近访问时间。"""
        entry = self.index.get_entry(db, user_id=user_id, entry_id=entry_id)
        if entry.is_folder:
            return entry
        return file_entry_crud.update(db, entry, {"last_accessed_at": utc_now()})

    def download(self, db: Session, *, user_id: int, entry_id: str):
        entry = self.open_entry(db, user_id=user_id, entry_id=entry_id)
        return self.stream(entry)

    def stream(self, entry: FileEntry):
        if entry.is_folder:
            raise InvalidOperation("文件夹不支持下载")
        return self.storage.open(bucket=self.bucket, path=entry.storage_path, filename=entry.name)


file_service = FileService()
