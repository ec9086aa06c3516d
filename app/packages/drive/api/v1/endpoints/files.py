"""文件与文件夹操作路由。

路由只负责参数转换与统一响应封装；业务规则全部在 ``file_service`` 中。
注意声明顺序：``/files/views/*`` 与 ``/files/search`` 需要先于 ``/files/{entry_id}``。
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.files import (
    DetailsPatchBody,
    FileEntryResponse,
    FilesListResponse,
    FilesMutationResponse,
    FlagBody,
    FolderCreateBody,
    MoveBody,
    RenameBody,
    serialize_entries,
    serialize_entry,
)
from app.packages.drive.core.dependencies import get_current_active_user, get_db
from app.packages.drive.core.enums import FileView, SortDirection, SortOption
from app.packages.drive.core.responses import create_response
from app.packages.drive.models.user import User
from app.packages.drive.services.file_service import file_service

router = APIRouter(tags=["files"])


@router.get("/files", response_model=FilesListResponse)
def list_children(
    parent_id: Optional[str] = Query(None, alias="parentId"),
    archived: bool = Query(False),
    sort_by: SortOption = Query(SortOption.NAME, alias="sortBy"),
    direction: SortDirection = Query(SortDirection.ASC),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    items = file_service.index.list_children(
        db,
        user_id=current_user.id,
        parent_id=parent_id,
        archived=archived,
        sort_by=sort_by,
        direction=direction,
    )
    return create_response("获取文件列表成功", serialize_entries(items))


@router.get("/files/views/{view}", response_model=FilesListResponse)
def list_view(
    view: FileView,
    sort_by: SortOption = Query(SortOption.NAME, alias="sortBy"),
    direction: SortDirection = Query(SortDirection.ASC),
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    items = file_service.list_view(
        db, user_id=current_user.id, view=view, sort_by=sort_by, direction=direction, limit=limit
    )
    return create_response("获取文件列表成功", serialize_entries(items))


@router.get("/files/search", response_model=FilesListResponse)
def search(
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    items = file_service.search(db, user_id=current_user.id, keyword=q)
    return create_response("搜索完成", serialize_entries(items))


@router.post("/folders", response_model=FileEntryResponse)
def create_folder(
    payload: FolderCreateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    folder = file_service.create_folder(db, user_id=current_user.id, name=payload.name, parent_id=payload.parentId)
    return create_response("文件夹创建成功", serialize_entry(folder))


@router.post("/files", response_model=FilesMutationResponse)
async def upload_file(
    file: UploadFile = File(...),
    parent_id: Optional[str] = Form(None, alias="parentId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    content = await file.read()
    result = file_service.upload(
        db,
        user_id=current_user.id,
        name=file.filename or "",
        content=content,
        mime_type=file.content_type,
        parent_id=parent_id or None,
    )
    msg = "上传成功" if result.thumbnail.ok else "上传成功，但缩略图生成失败"
    return create_response(msg, {"entry": serialize_entry(result.entry), "thumbnail": result.thumbnail.to_dict()})


@router.get("/files/{entry_id}", response_model=FileEntryResponse)
def get_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    entry = file_service.open_entry(db, user_id=current_user.id, entry_id=entry_id)
    return create_response("获取成功", serialize_entry(entry))


@router.get("/files/{entry_id}/download")
def download(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return file_service.download(db, user_id=current_user.id, entry_id=entry_id)


@router.patch("/files/{entry_id}", response_model=FileEntryResponse)
def update_details(
    entry_id: str,
    payload: DetailsPatchBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    entry = file_service.update_details(db, user_id=current_user.id, entry_id=entry_id, patch=payload.to_patch())
    return create_response("保存成功", serialize_entry(entry))


@router.put("/files/{entry_id}/name", response_model=FileEntryResponse)
def rename(
    entry_id: str,
    payload: RenameBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    entry = file_service.rename(db, user_id=current_user.id, entry_id=entry_id, new_name=payload.name)
    return create_response("重命名成功", serialize_entry(entry))


@router.put("/files/{entry_id}/parent", response_model=FileEntryResponse)
def move(
    entry_id: str,
    payload: MoveBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    entry = file_service.move(db, user_id=current_user.id, entry_id=entry_id, destination_id=payload.parentId)
    return create_response("移动成功", serialize_entry(entry))


@router.put("/files/{entry_id}/star", response_model=FileEntryResponse)
def set_starred(
    entry_id: str,
    payload: FlagBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    entry = file_service.toggle_star(db, user_id=current_user.id, entry_id=entry_id, value=payload.value)
    return create_response("已添加星标" if entry.is_starred else "已取消星标", serialize_entry(entry))


@router.put("/files/{entry_id}/archive", response_model=FileEntryResponse)
def set_archived(
    entry_id: str,
    payload: FlagBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    entry = file_service.toggle_archive(db, user_id=current_user.id, entry_id=entry_id, value=payload.value)
    return create_response("已归档" if entry.is_archived else "已取消归档", serialize_entry(entry))


@router.delete("/files/{entry_id}", response_model=FilesMutationResponse)
def delete(
    entry_id: str,
    confirm: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    result = file_service.delete(db, user_id=current_user.id, entry_id=entry_id, confirm=confirm)
    msg = "删除成功" if result.storage_cleanup.ok else "删除成功，但部分存储文件清理失败"
    return create_response(
        msg,
        {"deletedIds": result.deleted_ids, "storageCleanup": result.storage_cleanup.to_dict()},
    )
