"""文件夹导航路由：面包屑与“移动到”对话框的目录树。"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.folders import BreadcrumbResponse, FolderTreeResponse
from app.packages.drive.core.dependencies import get_db, get_owner_id
from app.packages.drive.core.responses import create_response
from app.packages.drive.services.tree_index import FolderPicker, tree_index

router = APIRouter(prefix="/folders", tags=["folders"])


@router.get("/tree", response_model=FolderTreeResponse)
def expand_folder(
    parent_id: Optional[str] = Query(None, alias="parentId"),
    exclude_id: Optional[str] = Query(None, alias="excludeId"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_owner_id),
):
    """展开目录树的一个节点，只返回子文件夹；``excludeId`` 为正在移动的条目。

    每次请求只展开一个节点。对话框打开期间已展开节点的缓存由客户端保存，
    服务端的 ``FolderPicker`` 只在单次请求内去重。
    """
    picker = FolderPicker(tree_index, db, user_id=user_id, moving_id=exclude_id)
    crumbs = picker.expand(parent_id)
    return create_response("获取成功", [{"id": c.id, "name": c.name} for c in crumbs])


@router.get("/{folder_id}/breadcrumb", response_model=BreadcrumbResponse)
def breadcrumb(
    folder_id: str,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_owner_id),
):
    crumbs = tree_index.breadcrumb(db, user_id=user_id, folder_id=folder_id)
    return create_response("获取成功", [{"id": c.id, "name": c.name} for c in crumbs])
