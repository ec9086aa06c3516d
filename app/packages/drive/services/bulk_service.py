"""选择与批量操作控制器。

``ViewState`` 是不可变值：每个操作都返回新的状态，调用方负责替换旧状态。
选择集始终是当前可见条目的子集；切换目录会清空选择并递增 ``generation``，
使切换前发出的列表请求在返回时被识别为过期结果而丢弃。
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.packages.drive.core.enums import BulkAction, SortDirection, SortOption
from app.packages.drive.core.exceptions import AppException, ValidationError
from app.packages.drive.core.logger import logger
from app.packages.drive.models.file_entry import FileEntry
from app.packages.drive.services.file_service import FileService, file_service
from app.packages.drive.services.results import BulkFailure, BulkResult


@dataclass(frozen=True)
class ViewState:
    folder_id: Optional[str] = None
    sort_by: str = SortOption.NAME.value
    direction: str = SortDirection.ASC.value
    selected: FrozenSet[str] = field(default_factory=frozenset)
    visible_ids: Tuple[str, ...] = ()
    generation: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "folder_id": self.folder_id,
            "sort_by": self.sort_by,
            "direction": self.direction,
            "selected": sorted(self.selected),
            "visible_ids": list(self.visible_ids),
            "generation": self.generation,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ViewState":
        visible = tuple(payload.get("visible_ids") or ())
        return cls(
            folder_id=payload.get("folder_id"),
            sort_by=SortOption(payload.get("sort_by") or SortOption.NAME).value,
            direction=SortDirection(payload.get("direction") or SortDirection.ASC).value,
            selected=frozenset(payload.get("selected") or ()) & frozenset(visible),
            visible_ids=visible,
            generation=int(payload.get("generation") or 0),
        )


@dataclass(frozen=True)
class ListingTicket:
    folder_id: Optional[str]
    generation: int


# ----------------------------
# 纯状态变换
# ----------------------------


def navigate(
    state: ViewState,
    folder_id: Optional[str],
    *,
    sort_by: Optional[str] = None,
    direction: Optional[str] = None,
) -> ViewState:
    """进入另一个目录或改变排序：清空选择与可见列表，等待新的列表结果。"""
    return replace(
        state,
        folder_id=folder_id,
        sort_by=SortOption(sort_by or state.sort_by).value,
        direction=SortDirection(direction or state.direction).value,
        selected=frozenset(),
        visible_ids=(),
        generation=state.generation + 1,
    )


def toggle(state: ViewState, entry_id: str) -> ViewState:
    """切换单个条目的选中状态；不在当前列表中的 id 被忽略。"""
    if entry_id not in state.visible_ids:
        return state
    if entry_id in state.selected:
        return replace(state, selected=state.selected - {entry_id})
    return replace(state, selected=state.selected | {entry_id})


def select_all(state: ViewState, ids: Optional[Iterable[str]] = None) -> ViewState:
    """全选当前列表；传入 ``ids`` 时只选中其中可见的部分。"""
    candidates = state.visible_ids if ids is None else ids
    return replace(state, selected=frozenset(candidates) & frozenset(state.visible_ids))


def clear(state: ViewState) -> ViewState:
    return replace(state, selected=frozenset())


# ----------------------------
# 列表请求的过期保护
# ----------------------------


def begin_listing(state: ViewState) -> ListingTicket:
    return ListingTicket(folder_id=state.folder_id, generation=state.generation)


def is_current(state: ViewState, ticket: ListingTicket) -> bool:
    return ticket.generation == state.generation and ticket.folder_id == state.folder_id


def accept_listing(state: ViewState, ticket: ListingTicket, items: Sequence[FileEntry]) -> ViewState:
    """只接受与当前状态匹配的列表结果；过期结果原样返回旧状态。

    接受新列表时，选择集裁剪为仍然可见的条目。
    """
    if not is_current(state, ticket):
        logger.info(
            "discarding stale listing for folder %s (generation %s, active %s)",
            ticket.folder_id,
            ticket.generation,
            state.generation,
        )
        return state
    visible = tuple(item.id for item in items)
    return replace(state, visible_ids=visible, selected=state.selected & frozenset(visible))


# ----------------------------
# 批量操作
# ----------------------------


class BulkService:
    def __init__(self, files: FileService = file_service) -> None:
        self.files = files

    def apply_bulk(
        self,
        db: Session,
        *,
        user_id: int,
        action: BulkAction | str,
        ids: Iterable[str],
        confirm: bool = False,
    ) -> BulkResult:
        """逐条执行批量操作，失败按条目记录，已成功的部分不回滚。

        未确认的批量删除整体拒绝，不处理任何条目。
        """
        action = BulkAction(action)
        if action == BulkAction.DELETE and not confirm:
            raise ValidationError("删除操作需要确认")
        result = BulkResult(action=action.value)
        removed: set = set()
        for entry_id in dict.fromkeys(ids):
            if action == BulkAction.DELETE and entry_id in removed:
                # 已随上级文件夹一并删除
                result.succeeded.append(entry_id)
                continue
            try:
                self._apply_one(db, user_id=user_id, action=action, entry_id=entry_id, confirm=confirm, removed=removed)
            except AppException as exc:
                result.failed.append(BulkFailure(id=entry_id, reason=exc.msg))
                continue
            result.succeeded.append(entry_id)
        if result.failed:
            logger.warning(
                "bulk %s finished with %s failures out of %s",
                action.value,
                result.failed_count,
                result.failed_count + result.succeeded_count,
                extra={"user_id": user_id},
            )
        return result

    def _apply_one(
        self,
        db: Session,
        *,
        user_id: int,
        action: BulkAction,
        entry_id: str,
        confirm: bool,
        removed: set,
    ) -> None:
        if action == BulkAction.STAR:
            self.files.toggle_star(db, user_id=user_id, entry_id=entry_id, value=True)
        elif action == BulkAction.UNSTAR:
            self.files.toggle_star(db, user_id=user_id, entry_id=entry_id, value=False)
        elif action == BulkAction.ARCHIVE:
            self.files.toggle_archive(db, user_id=user_id, entry_id=entry_id, value=True)
        elif action == BulkAction.UNARCHIVE:
            self.files.toggle_archive(db, user_id=user_id, entry_id=entry_id, value=False)
        else:
            outcome = self.files.delete(db, user_id=user_id, entry_id=entry_id, confirm=confirm)
            removed.update(outcome.deleted_ids)

    def refresh(self, db: Session, *, user_id: int, state: ViewState) -> Tuple[ViewState, List[FileEntry]]:
        """重新读取当前目录；读取期间状态若已变化，结果会被丢弃。"""
        ticket = begin_listing(state)
        items = self.files.index.list_children(
            db,
            user_id=user_id,
            parent_id=state.folder_id,
            sort_by=state.sort_by,
            direction=state.direction,
        )
        return accept_listing(state, ticket, items), items

    def run_bulk(
        self,
        db: Session,
        *,
        user_id: int,
        state: ViewState,
        action: BulkAction | str,
        confirm: bool = False,
    ) -> Tuple[BulkResult, ViewState, List[FileEntry]]:
        """对当前选择执行批量操作，然后清空选择并刷新列表。

        ``apply_bulk`` 抛出 ``ValidationError`` 时选择集保持不变。
        """
        result = self.apply_bulk(
            db,
            user_id=user_id,
            action=action,
            ids=[entry_id for entry_id in state.visible_ids if entry_id in state.selected],
            confirm=confirm,
        )
        next_state, items = self.refresh(db, user_id=user_id, state=clear(state))
        return result, next_state, items


bulk_service = BulkService()
