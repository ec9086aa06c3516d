"""多选与批量操作路由。

每个用户的视图状态（当前目录、排序、选择集）保存在 ``view_state_service`` 中；
目录列表在读取完成后再与最新状态比对，期间用户已切换目录时丢弃本次结果。
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.files import serialize_entries
from app.packages.drive.api.v1.schemas.selection import (
    BulkBody,
    NavigateBody,
    SelectAllBody,
    SelectionResponse,
    ToggleBody,
)
from app.packages.drive.core.dependencies import get_db, get_owner_id
from app.packages.drive.core.responses import create_response
from app.packages.drive.models.file_entry import FileEntry
from app.packages.drive.services import bulk_service as bulk
from app.packages.drive.services.view_state_service import view_state_service

router = APIRouter(prefix="/selection", tags=["selection"])


def _payload(state: bulk.ViewState, items: Optional[List[FileEntry]] = None, **extra) -> dict:
    data = {"state": state.to_dict()}
    if items is not None:
        data["items"] = serialize_entries(items)
    data.update(extra)
    return data


@router.get("", response_model=SelectionResponse)
def get_selection(user_id: int = Depends(get_owner_id)):
    return create_response("获取成功", _payload(view_state_service.get(user_id)))


@router.post("/navigate", response_model=SelectionResponse)
def navigate(
    payload: NavigateBody,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_owner_id),
):
    state = bulk.navigate(
        view_state_service.get(user_id),
        payload.folderId,
        sort_by=payload.sortBy,
        direction=payload.direction,
    )
    view_state_service.save(user_id, state)

    ticket = bulk.begin_listing(state)
    items = bulk.bulk_service.files.index.list_children(
        db, user_id=user_id, parent_id=state.folder_id, sort_by=state.sort_by, direction=state.direction
    )
    latest = view_state_service.get(user_id)
    if not bulk.is_current(latest, ticket):
        return create_response("目录已切换，本次结果已忽略", _payload(latest, stale=True))
    accepted = view_state_service.save(user_id, bulk.accept_listing(latest, ticket, items))
    return create_response("获取文件列表成功", _payload(accepted, items, stale=False))


@router.post("/toggle", response_model=SelectionResponse)
def toggle(payload: ToggleBody, user_id: int = Depends(get_owner_id)):
    state = bulk.toggle(view_state_service.get(user_id), payload.id)
    view_state_service.save(user_id, state)
    return create_response("操作成功", _payload(state))


@router.post("/select-all", response_model=SelectionResponse)
def select_all(payload: SelectAllBody, user_id: int = Depends(get_owner_id)):
    state = bulk.select_all(view_state_service.get(user_id), payload.ids)
    view_state_service.save(user_id, state)
    return create_response("操作成功", _payload(state))


@router.delete("", response_model=SelectionResponse)
def clear(user_id: int = Depends(get_owner_id)):
    state = bulk.clear(view_state_service.get(user_id))
    view_state_service.save(user_id, state)
    return create_response("已清空选择", _payload(state))


@router.post("/bulk", response_model=SelectionResponse)
def run_bulk(
    payload: BulkBody,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_owner_id),
):
    result, state, items = bulk.bulk_service.run_bulk(
        db,
        user_id=user_id,
        state=view_state_service.get(user_id),
        action=payload.action,
        confirm=payload.confirm,
    )
    view_state_service.save(user_id, state)
    if not result.failed:
        msg = f"已完成 {result.succeeded_count} 项"
    elif result.succeeded:
        msg = f"已完成 {result.succeeded_count} 项，{result.failed_count} 项失败"
    else:
        msg = f"{result.failed_count} 项操作失败"
    return create_response(msg, _payload(state, items, result=result.to_dict()))
