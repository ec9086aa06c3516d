"""文件分类路由。"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.packages.drive.api.v1.schemas.categories import (
    CategoryCreateBody,
    CategoryListResponse,
    CategoryMutationResponse,
    CategoryOut,
    CategoryResponse,
    CategoryUpdateBody,
)
from app.packages.drive.core.dependencies import get_current_active_user, get_db
from app.packages.drive.core.responses import create_response
from app.packages.drive.models.user import User
from app.packages.drive.services.category_service import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


def _dump(category) -> dict:
    return CategoryOut.model_validate(category).model_dump(mode="json")


@router.get("", response_model=CategoryListResponse)
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    items = category_service.list_categories(db, user_id=current_user.id)
    return create_response("获取分类列表成功", [_dump(item) for item in items])


@router.post("", response_model=CategoryResponse)
def create_category(
    payload: CategoryCreateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    category = category_service.create_category(db, user_id=current_user.id, **payload.model_dump())
    return create_response("分类创建成功", _dump(category))


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    payload: CategoryUpdateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    category = category_service.update_category(
        db, user_id=current_user.id, category_id=category_id, patch=payload.model_dump(exclude_unset=True)
    )
    return create_response("分类更新成功", _dump(category))


@router.delete("/{category_id}", response_model=CategoryMutationResponse)
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    detached = category_service.delete_category(db, user_id=current_user.id, category_id=category_id)
    return create_response("分类已删除", {"detachedFiles": detached})
