"""文件分类：增删改查，删除分类不删除文件。"""

import pytest

from app.packages.drive.core.exceptions import NotFound, ValidationError
from app.packages.drive.crud.file_entry import file_entry_crud
from app.packages.drive.services.category_service import category_service
from app.packages.drive.services.file_service import file_service


def test_create_list_and_update(db, user):
    category_service.create_category(db, user_id=user.id, name="Invoices", color="#ff0000")
    category_service.create_category(db, user_id=user.id, name="contracts")

    names = [c.name for c in category_service.list_categories(db, user_id=user.id)]
    assert names == ["contracts", "Invoices"]

    first = category_service.list_categories(db, user_id=user.id)[0]
    updated = category_service.update_category(
        db, user_id=user.id, category_id=first.id, patch={"name": " Legal ", "icon": "scale"}
    )
    assert (updated.name, updated.icon) == ("Legal", "scale")


def test_blank_names_are_rejected(db, user):
    with pytest.raises(ValidationError):
        category_service.create_category(db, user_id=user.id, name=" ")
    category = category_service.create_category(db, user_id=user.id, name="ok")
    with pytest.raises(ValidationError):
        category_service.update_category(db, user_id=user.id, category_id=category.id, patch={"name": ""})


def test_delete_detaches_files_but_keeps_them(db, user):
    category = category_service.create_category(db, user_id=user.id, name="Receipts")
    doc = file_service.upload(db, user_id=user.id, name="r.pdf", content=b"r").entry
    file_service.update_details(db, user_id=user.id, entry_id=doc.id, patch={"category_id": category.id})
    category_id, doc_id = category.id, doc.id

    detached = category_service.delete_category(db, user_id=user.id, category_id=category_id)

    assert detached == 1
    db.expire_all()
    kept = file_entry_crud.get(db, doc_id)
    assert kept is not None and kept.category_id is None
    with pytest.raises(NotFound):
        category_service.get_category(db, user_id=user.id, category_id=category_id)
