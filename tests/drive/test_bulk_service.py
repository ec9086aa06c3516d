"""选择集状态变换、批量操作与过期列表保护。"""

import pytest

from app.packages.drive.core.exceptions import ValidationError
from app.packages.drive.crud.file_entry import file_entry_crud
from app.packages.drive.services import bulk_service as bulk
from app.packages.drive.services.file_service import file_service


def _state_with(ids, folder_id=None):
    state = bulk.navigate(bulk.ViewState(), folder_id)
    entries = [file_entry_crud.model(id=i, name=i, is_folder=False) for i in ids]
    return bulk.accept_listing(state, bulk.begin_listing(state), entries)


def test_toggle_select_all_and_clear():
    state = _state_with(["a", "b", "c"])

    state = bulk.toggle(state, "a")
    assert state.selected == {"a"}
    state = bulk.toggle(state, "a")
    assert state.selected == frozenset()

    state = bulk.toggle(state, "not-visible")
    assert state.selected == frozenset()

    state = bulk.select_all(state)
    assert state.selected == {"a", "b", "c"}
    assert bulk.select_all(state, ["b", "zzz"]).selected == {"b"}
    assert bulk.clear(state).selected == frozenset()


def test_operations_return_new_states():
    state = _state_with(["a"])
    toggled = bulk.toggle(state, "a")
    assert state.selected == frozenset()
    assert toggled is not state


def test_navigate_clears_selection_and_bumps_generation():
    state = bulk.select_all(_state_with(["a", "b"], folder_id="f1"))
    moved = bulk.navigate(state, "f2", sort_by="size", direction="desc")
    assert moved.selected == frozenset()
    assert moved.visible_ids == ()
    assert moved.generation == state.generation + 1
    assert (moved.folder_id, moved.sort_by, moved.direction) == ("f2", "size", "desc")


def test_stale_listing_is_discarded():
    state = bulk.navigate(bulk.ViewState(), "f1")
    ticket_f1 = bulk.begin_listing(state)
    state = bulk.navigate(state, "f2")
    ticket_f2 = bulk.begin_listing(state)

    f2_items = [file_entry_crud.model(id="y", name="y", is_folder=False)]
    state = bulk.accept_listing(state, ticket_f2, f2_items)
    late_f1 = [file_entry_crud.model(id="x", name="x", is_folder=False)]
    after = bulk.accept_listing(state, ticket_f1, late_f1)

    assert after is state
    assert after.visible_ids == ("y",)


def test_reload_of_same_folder_after_navigation_is_also_stale():
    state = bulk.navigate(bulk.ViewState(), "f1")
    old_ticket = bulk.begin_listing(state)
    state = bulk.navigate(bulk.navigate(state, "f2"), "f1")
    assert not bulk.is_current(state, old_ticket)


def test_new_listing_prunes_selection():
    state = bulk.select_all(_state_with(["a", "b"]))
    ticket = bulk.begin_listing(state)
    refreshed = bulk.accept_listing(state, ticket, [file_entry_crud.model(id="b", name="b", is_folder=False)])
    assert refreshed.selected == {"b"}


def test_view_state_round_trips_through_dict():
    state = bulk.toggle(_state_with(["a", "b"], folder_id="f"), "b")
    assert bulk.ViewState.from_dict(state.to_dict()) == state


def test_bulk_star_reports_partial_failure(db, user):
    docs = [
        file_service.upload(db, user_id=user.id, name=f"{n}.txt", content=b"x").entry.id for n in ("a", "b", "c")
    ]
    # 模拟其他会话已删除其中一个条目
    file_service.delete(db, user_id=user.id, entry_id=docs[1], confirm=True)

    result = bulk.bulk_service.apply_bulk(db, user_id=user.id, action="star", ids=docs)

    assert result.succeeded_count == 2
    assert result.failed_count == 1
    assert result.failed[0].id == docs[1]
    assert result.partial
    db.expire_all()
    assert file_entry_crud.get(db, docs[0]).is_starred
    assert file_entry_crud.get(db, docs[2]).is_starred


def test_bulk_delete_without_confirmation_is_rejected_upfront(db, user):
    doc = file_service.upload(db, user_id=user.id, name="a.txt", content=b"x").entry
    with pytest.raises(ValidationError):
        bulk.bulk_service.apply_bulk(db, user_id=user.id, action="delete", ids=[doc.id])
    assert file_entry_crud.get(db, doc.id) is not None


def test_unconfirmed_run_bulk_delete_keeps_selection(db, user):
    doc = file_service.upload(db, user_id=user.id, name="keep.txt", content=b"x").entry
    state, _ = bulk.bulk_service.refresh(db, user_id=user.id, state=bulk.ViewState())
    state = bulk.toggle(state, doc.id)

    with pytest.raises(ValidationError):
        bulk.bulk_service.run_bulk(db, user_id=user.id, state=state, action="delete")

    assert state.selected == {doc.id}
    assert file_entry_crud.get(db, doc.id) is not None


def test_bulk_delete_of_folder_and_its_child(db, user):
    folder = file_service.create_folder(db, user_id=user.id, name="f")
    child = file_service.upload(db, user_id=user.id, name="c.txt", content=b"x", parent_id=folder.id).entry
    folder_id, child_id = folder.id, child.id

    result = bulk.bulk_service.apply_bulk(
        db, user_id=user.id, action="delete", ids=[folder_id, child_id], confirm=True
    )

    assert result.succeeded == [folder_id, child_id]
    assert result.failed == []


def test_run_bulk_clears_selection_and_refreshes(db, user):
    folder = file_service.create_folder(db, user_id=user.id, name="work")
    a = file_service.upload(db, user_id=user.id, name="a.txt", content=b"a", parent_id=folder.id).entry
    b = file_service.upload(db, user_id=user.id, name="b.txt", content=b"b", parent_id=folder.id).entry

    state = bulk.navigate(bulk.ViewState(), folder.id)
    state, _ = bulk.bulk_service.refresh(db, user_id=user.id, state=state)
    state = bulk.toggle(state, a.id)

    result, state, items = bulk.bulk_service.run_bulk(db, user_id=user.id, state=state, action="archive")

    assert result.succeeded == [a.id]
    assert state.selected == frozenset()
    assert [e.id for e in items] == [b.id]
    assert state.visible_ids == (b.id,)


def test_bulk_archive_skips_entry_removed_elsewhere(db, user):
    ids = [
        file_service.upload(db, user_id=user.id, name=f"{n}.txt", content=b"x").entry.id for n in ("one", "two", "three")
    ]
    file_service.delete(db, user_id=user.id, entry_id=ids[1], confirm=True)

    result = bulk.bulk_service.apply_bulk(db, user_id=user.id, action="archive", ids=ids)

    assert result.succeeded == [ids[0], ids[2]]
    assert [f.id for f in result.failed] == [ids[1]]
    db.expire_all()
    assert file_entry_crud.get(db, ids[0]).is_archived
    assert file_entry_crud.get(db, ids[2]).is_archived
