"""文件树索引：按层读取目录内容，并沿父指针回溯祖先链。

整棵树从不一次性加载：每次只向记录存储请求一个目录层级。
记录存储不校验父指针，因此祖先回溯必须自带上限，超过即视为数据损坏。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.packages.drive.core.constants import MAX_ANCESTOR_HOPS
from app.packages.drive.core.enums import SortDirection, SortOption
from app.packages.drive.core.exceptions import DataIntegrityError, InvalidOperation, NotFound
from app.packages.drive.core.logger import logger
from app.packages.drive.crud.file_entry import file_entry_crud
from app.packages.drive.models.file_entry import FileEntry


@dataclass(frozen=True)
class Crumb:
    id: str
    name: str


def _name_key(entry: FileEntry) -> str:
    return (entry.name or "").lower()


_SORT_KEYS: Dict[SortOption, Callable[[FileEntry], object]] = {
    SortOption.NAME: _name_key,
    SortOption.DATE: lambda e: e.update_time or e.create_time,
    SortOption.SIZE: lambda e: int(e.size_bytes or 0),
    SortOption.TYPE: lambda e: (e.mime_type or "").lower(),
}


def sort_entries(
    entries: List[FileEntry],
    sort_by: SortOption | str = SortOption.NAME,
    direction: SortDirection | str = SortDirection.ASC,
) -> List[FileEntry]:
    """文件夹在前，其次按排序键；键相同时按名称升序、再按 id 升序，保证结果确定。"""
    option = SortOption(sort_by)
    descending = SortDirection(direction) == SortDirection.DESC
    # 依赖 sorted 的稳定性逐层叠加：先排决胜键，再排主键，最后把文件夹提到前面
    ordered = sorted(entries, key=lambda e: (_name_key(e), e.id))
    if option != SortOption.NAME or descending:
        ordered = sorted(ordered, key=_SORT_KEYS[option], reverse=descending)
    return sorted(ordered, key=lambda e: not e.is_folder)


class FileTreeIndex:
    def get_entry(self, db: Session, *, user_id: int, entry_id: str) -> FileEntry:
        entry = file_entry_crud.get(db, entry_id, user_id=user_id)
        if entry is None:
            logger.info("file entry not found", extra={"entry_id": entry_id, "user_id": user_id})
            raise NotFound()
        return entry

    def get_folder(self, db: Session, *, user_id: int, folder_id: str) -> FileEntry:
        entry = self.get_entry(db, user_id=user_id, entry_id=folder_id)
        if not entry.is_folder:
            raise InvalidOperation("目标不是文件夹")
        return entry

    def list_children(
        self,
        db: Session,
        *,
        user_id: int,
        parent_id: Optional[str],
        archived: bool = False,
        sort_by: SortOption | str = SortOption.NAME,
        direction: SortDirection | str = SortDirection.ASC,
    ) -> List[FileEntry]:
        """返回某目录（``None`` 为根目录）的直接子项；空目录返回空列表。"""
        if parent_id is not None:
            self.get_folder(db, user_id=user_id, folder_id=parent_id)
        rows = file_entry_crud.list_children(db, user_id=user_id, parent_id=parent_id, archived=archived)
        return sort_entries(rows, sort_by, direction)

    def ancestor_chain(self, db: Session, *, user_id: int, folder_id: str) -> List[Crumb]:
        """从根到 ``folder_id`` 的面包屑（包含自身）。

        某个祖先缺失时抛出 ``NotFound``，其 ``data["resolved"]`` 为可解析的前缀；
        回溯超过 ``MAX_ANCESTOR_HOPS`` 跳时抛出 ``DataIntegrityError``。
        """
        walked: List[Crumb] = []
        current_id: Optional[str] = folder_id
        hops = 0
        while current_id is not None:
            if hops >= MAX_ANCESTOR_HOPS:
                logger.error(
                    "ancestor chain exceeded %s hops, parent pointers form a cycle",
                    MAX_ANCESTOR_HOPS,
                    extra={"entry_id": folder_id, "user_id": user_id},
                )
                raise DataIntegrityError("文件夹层级异常：父目录指针存在环路", {"folder_id": folder_id})
            entry = file_entry_crud.get(db, current_id, user_id=user_id)
            if entry is None:
                logger.warning(
                    "broken ancestor chain at %s", current_id, extra={"entry_id": folder_id, "user_id": user_id}
                )
                resolved = [{"id": c.id, "name": c.name} for c in reversed(walked)]
                raise NotFound("上级文件夹不存在或已被删除", {"missing_id": current_id, "resolved": resolved})
            walked.append(Crumb(id=entry.id, name=entry.name))
            current_id = entry.parent_folder_id
            hops += 1
        walked.reverse()
        return walked

    def breadcrumb(self, db: Session, *, user_id: int, folder_id: Optional[str]) -> List[Crumb]:
        """面包屑导航：祖先链断裂时退化为可解析的部分，而不是整体失败。"""
        if folder_id is None:
            return []
        try:
            return self.ancestor_chain(db, user_id=user_id, folder_id=folder_id)
        except NotFound as exc:
            resolved = (exc.data or {}).get("resolved") or []
            return [Crumb(id=item["id"], name=item["name"]) for item in resolved]

    def is_same_or_descendant(self, db: Session, *, user_id: int, candidate_id: str, ancestor_id: str) -> bool:
        """判断 ``candidate_id`` 是否为 ``ancestor_id`` 本身或其子孙。"""
        if candidate_id == ancestor_id:
            return True
        chain = self.ancestor_chain(db, user_id=user_id, folder_id=candidate_id)
        return any(crumb.id == ancestor_id for crumb in chain)


class FolderPicker:
    """“移动到…”对话框使用的懒加载目录树。

    只展开用户点开的节点；每个节点在对话框生命周期内只请求一次 ``list_children``。
    正在移动的条目本身不会出现在可选项中。
    """

    def __init__(
        self,
        index: FileTreeIndex,
        db: Session,
        *,
        user_id: int,
        moving_id: Optional[str] = None,
    ) -> None:
        self._index = index
        self._db = db
        self._user_id = user_id
        self._moving_id = moving_id
        self._expanded: Dict[Optional[str], List[Crumb]] = {}

    def expand(self, folder_id: Optional[str]) -> List[Crumb]:
        if folder_id not in self._expanded:
            children = self._index.list_children(self._db, user_id=self._user_id, parent_id=folder_id)
            self._expanded[folder_id] = [
                Crumb(id=child.id, name=child.name)
                for child in children
                if child.is_folder and child.id != self._moving_id
            ]
        return self._expanded[folder_id]

    def is_expanded(self, folder_id: Optional[str]) -> bool:
        return folder_id in self._expanded


tree_index = FileTreeIndex()
