"""单条目变更：新建、上传、重命名、移动、标记、删除与详情。"""

import io
from datetime import datetime, timedelta, timezone

import pytest
from PIL import Image

from app.packages.drive.core.exceptions import AppException, BackendUnavailable, InvalidOperation, NotFound, ValidationError
from app.packages.drive.crud.file_entry import file_entry_crud
from app.packages.drive.crud.share_link import share_link_crud
from app.packages.drive.services.category_service import category_service
from app.packages.drive.services.file_service import FileService, file_service
from app.packages.drive.services.share_service import share_service


def _png_bytes(size=(64, 48)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


def test_create_folder_rejects_blank_name(db, user):
    with pytest.raises(ValidationError):
        file_service.create_folder(db, user_id=user.id, name="   ")


def test_upload_stores_object_under_parent_prefix(db, user):
    folder = file_service.create_folder(db, user_id=user.id, name="docs")
    result = file_service.upload(
        db, user_id=user.id, name="notes.txt", content=b"hello", mime_type="text/plain", parent_id=folder.id
    )
    entry = result.entry
    assert entry.storage_path.startswith(f"folder_{folder.id}/")
    assert entry.storage_path.endswith("_notes.txt")
    assert entry.size_bytes == 5
    assert entry.public_url.endswith(entry.storage_path)
    assert not result.thumbnail.attempted


def test_upload_to_root_uses_root_prefix(db, user):
    result = file_service.upload(db, user_id=user.id, name="a.txt", content=b"x", mime_type="text/plain")
    assert result.entry.storage_path.startswith("root/")


def test_image_upload_gets_thumbnail(db, user):
    result = file_service.upload(db, user_id=user.id, name="pic.png", content=_png_bytes(), mime_type="image/png")
    assert result.thumbnail.attempted and result.thumbnail.ok
    assert result.entry.thumbnail_url


def test_broken_image_still_uploads(db, user):
    result = file_service.upload(db, user_id=user.id, name="bad.png", content=b"not an image", mime_type="image/png")
    assert result.entry.id
    assert result.thumbnail.attempted and not result.thumbnail.ok
    assert result.entry.thumbnail_url is None


def test_rename_trims_and_rejects_empty_names(db, user):
    folder = file_service.create_folder(db, user_id=user.id, name="old")
    renamed = file_service.rename(db, user_id=user.id, entry_id=folder.id, new_name="  new  ")
    assert renamed.name == "new"

    with pytest.raises(ValidationError):
        file_service.rename(db, user_id=user.id, entry_id=folder.id, new_name="   ")
    db.expire_all()
    assert file_entry_crud.get(db, folder.id).name == "new"


def test_rename_missing_entry_is_not_found(db, user):
    with pytest.raises(NotFound):
        file_service.rename(db, user_id=user.id, entry_id="missing", new_name="x")


def test_move_into_own_descendant_is_rejected_without_writing(db, user):
    a = file_service.create_folder(db, user_id=user.id, name="a")
    b = file_service.create_folder(db, user_id=user.id, name="b", parent_id=a.id)
    c = file_service.create_folder(db, user_id=user.id, name="c", parent_id=b.id)

    for target in (a.id, b.id, c.id):
        with pytest.raises(InvalidOperation):
            file_service.move(db, user_id=user.id, entry_id=a.id, destination_id=target)

    db.expire_all()
    assert file_entry_crud.get(db, a.id).parent_folder_id is None


def test_move_to_sibling_and_back_to_root(db, user):
    a = file_service.create_folder(db, user_id=user.id, name="a")
    b = file_service.create_folder(db, user_id=user.id, name="b")
    doc = file_service.upload(db, user_id=user.id, name="d.txt", content=b"d", parent_id=a.id).entry

    moved = file_service.move(db, user_id=user.id, entry_id=a.id, destination_id=b.id)
    assert moved.parent_folder_id == b.id
    to_root = file_service.move(db, user_id=user.id, entry_id=doc.id, destination_id=None)
    assert to_root.parent_folder_id is None


def test_move_into_file_or_missing_folder_fails(db, user):
    doc = file_service.upload(db, user_id=user.id, name="d.txt", content=b"d").entry
    other = file_service.upload(db, user_id=user.id, name="e.txt", content=b"e").entry
    with pytest.raises(InvalidOperation):
        file_service.move(db, user_id=user.id, entry_id=doc.id, destination_id=other.id)
    with pytest.raises(NotFound):
        file_service.move(db, user_id=user.id, entry_id=doc.id, destination_id="nowhere")


def test_star_and_archive_flags(db, user):
    doc = file_service.upload(db, user_id=user.id, name="d.txt", content=b"d").entry
    assert file_service.toggle_star(db, user_id=user.id, entry_id=doc.id, value=True).is_starred
    assert not file_service.toggle_star(db, user_id=user.id, entry_id=doc.id, value=False).is_starred
    assert file_service.toggle_archive(db, user_id=user.id, entry_id=doc.id, value=True).is_archived


def test_delete_requires_confirmation(db, user):
    doc = file_service.upload(db, user_id=user.id, name="d.txt", content=b"d").entry
    with pytest.raises(ValidationError):
        file_service.delete(db, user_id=user.id, entry_id=doc.id)
    assert file_entry_crud.get(db, doc.id) is not None


def test_delete_folder_cascades_to_subtree_and_share_links(db, user):
    top = file_service.create_folder(db, user_id=user.id, name="top")
    inner = file_service.create_folder(db, user_id=user.id, name="inner", parent_id=top.id)
    doc = file_service.upload(db, user_id=user.id, name="d.txt", content=b"d", parent_id=inner.id).entry
    archived = file_service.upload(db, user_id=user.id, name="old.txt", content=b"o", parent_id=top.id).entry
    file_service.toggle_archive(db, user_id=user.id, entry_id=archived.id, value=True)
    token = share_service.create_share_link(db, user_id=user.id, file_id=doc.id).token

    result = file_service.delete(db, user_id=user.id, entry_id=top.id, confirm=True)

    assert set(result.deleted_ids) == {top.id, inner.id, doc.id, archived.id}
    assert result.storage_cleanup.ok
    for entry_id in result.deleted_ids:
        assert file_entry_crud.get(db, entry_id) is None
    assert share_link_crud.get_by_token(db, token) is None


class _FlakyStorage:
    """上传正常，删除总是失败的存储替身。"""

    def __init__(self, real):
        self.real = real

    def upload(self, **kwargs):
        return self.real.upload(**kwargs)

    def get_public_url(self, **kwargs):
        return self.real.get_public_url(**kwargs)

    def remove(self, **kwargs):
        raise BackendUnavailable("文件删除失败，请稍后重试")

    def open(self, **kwargs):
        return self.real.open(**kwargs)


def test_storage_cleanup_failure_is_reported_separately(db, user):
    service = FileService(storage_factory=lambda: _FlakyStorage(file_service.storage))
    doc = service.upload(db, user_id=user.id, name="d.txt", content=b"d").entry
    doc_id, key = doc.id, doc.storage_path

    result = service.delete(db, user_id=user.id, entry_id=doc_id, confirm=True)

    assert result.deleted_ids == [doc_id]
    assert file_entry_crud.get(db, doc_id) is None
    assert not result.storage_cleanup.ok
    assert result.storage_cleanup.failures == [key]


def test_update_details_patches_only_given_fields(db, user):
    category = category_service.create_category(db, user_id=user.id, name="Invoices")
    doc = file_service.upload(db, user_id=user.id, name="d.txt", content=b"d").entry

    updated = file_service.update_details(
        db,
        user_id=user.id,
        entry_id=doc.id,
        patch={"category_id": category.id, "shared_with": ["a@x.io", " a@x.io ", "b@x.io", ""]},
    )
    assert updated.category_id == category.id
    assert updated.shared_with == ["a@x.io", "b@x.io"]

    updated = file_service.update_details(db, user_id=user.id, entry_id=doc.id, patch={"description": " Q3 "})
    assert updated.description == "Q3"
    assert updated.category_id == category.id

    with pytest.raises(NotFound):
        file_service.update_details(db, user_id=user.id, entry_id=doc.id, patch={"category_id": "nope"})
    with pytest.raises(ValidationError):
        file_service.update_details(db, user_id=user.id, entry_id=doc.id, patch={"name": "x"})


def test_open_entry_touches_last_accessed(db, user):
    doc = file_service.upload(db, user_id=user.id, name="d.txt", content=b"d").entry
    assert doc.last_accessed_at is None
    before = datetime.now(timezone.utc) - timedelta(seconds=5)
    opened = file_service.open_entry(db, user_id=user.id, entry_id=doc.id)
    stamp = opened.last_accessed_at
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    assert stamp >= before


def test_views_and_search_skip_archived_entries(db, user):
    starred = file_service.upload(db, user_id=user.id, name="Report.pdf", content=b"r").entry
    hidden = file_service.upload(db, user_id=user.id, name="report-old.pdf", content=b"o").entry
    folder = file_service.create_folder(db, user_id=user.id, name="reports")
    file_service.toggle_star(db, user_id=user.id, entry_id=starred.id, value=True)
    file_service.toggle_star(db, user_id=user.id, entry_id=hidden.id, value=True)
    file_service.toggle_archive(db, user_id=user.id, entry_id=hidden.id, value=True)

    assert [e.id for e in file_service.list_view(db, user_id=user.id, view="starred")] == [starred.id]
    assert [e.id for e in file_service.list_view(db, user_id=user.id, view="archived")] == [hidden.id]
    recent_ids = {e.id for e in file_service.list_view(db, user_id=user.id, view="recent")}
    assert recent_ids == {starred.id}

    found = file_service.search(db, user_id=user.id, keyword="REPORT")
    assert [e.id for e in found] == [folder.id, starred.id]
    assert file_service.search(db, user_id=user.id, keyword="  ") == []


def test_search_treats_wildcard_characters_literally(db, user):
    file_service.upload(db, user_id=user.id, name="abc.txt", content=b"a")
    file_service.upload(db, user_id=user.id, name="report.txt", content=b"r")
    literal = file_service.upload(db, user_id=user.id, name="50%_off.txt", content=b"p").entry

    assert file_service.search(db, user_id=user.id, keyword="a_c") == []
    assert [e.id for e in file_service.search(db, user_id=user.id, keyword="%")] == [literal.id]
    assert [e.id for e in file_service.search(db, user_id=user.id, keyword="%_o")] == [literal.id]


def test_download_of_folder_is_rejected(db, user):
    folder = file_service.create_folder(db, user_id=user.id, name="f")
    with pytest.raises(AppException):
        file_service.download(db, user_id=user.id, entry_id=folder.id)
