"""文件管理接口集成测试（LOCAL 存储）。"""

import io

import redis
from fastapi.testclient import TestClient

from app.packages.drive.services import view_state_service as view_state_module

API = "/api/v1"


def _mkdir(client, headers, name, parent=None):
    resp = client.post(f"{API}/folders", json={"name": name, "parentId": parent}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


def _upload(client, headers, name, content=b"hello", parent=None):
    data = {"parentId": parent} if parent else {}
    resp = client.post(
        f"{API}/files",
        data=data,
        files={"file": (name, io.BytesIO(content), "text/plain")},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["entry"]


def test_folder_listing_breadcrumb_and_download(client: TestClient, auth_headers):
    docs = _mkdir(client, auth_headers, "docs")
    drafts = _mkdir(client, auth_headers, "drafts", docs)
    entry = _upload(client, auth_headers, "a.txt", b"hello world", drafts)

    listing = client.get(f"{API}/files", params={"parentId": drafts}, headers=auth_headers)
    assert listing.status_code == 200
    assert [i["name"] for i in listing.json()["data"]] == ["a.txt"]

    crumbs = client.get(f"{API}/folders/{drafts}/breadcrumb", headers=auth_headers).json()["data"]
    assert [c["name"] for c in crumbs] == ["docs", "drafts"]

    down = client.get(f"{API}/files/{entry['id']}/download", headers=auth_headers)
    assert down.status_code == 200
    assert down.content == b"hello world"

    public = client.get(entry["public_url"].replace("http://testserver", ""))
    assert public.status_code == 200

    detail = client.get(f"{API}/files/{entry['id']}", headers=auth_headers).json()["data"]
    assert detail["last_accessed_at"] is not None


def test_empty_folder_returns_empty_list(client: TestClient, auth_headers):
    folder = _mkdir(client, auth_headers, "empty")
    resp = client.get(f"{API}/files", params={"parentId": folder}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == []


def test_unknown_entry_is_404(client: TestClient, auth_headers):
    resp = client.put(f"{API}/files/missing/name", json={"name": "x"}, headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == 404


def test_rename_move_and_invalid_move(client: TestClient, auth_headers):
    a = _mkdir(client, auth_headers, "a")
    b = _mkdir(client, auth_headers, "b", a)

    renamed = client.put(f"{API}/files/{b}/name", json={"name": "  bee "}, headers=auth_headers)
    assert renamed.json()["data"]["name"] == "bee"
    blank = client.put(f"{API}/files/{b}/name", json={"name": "  "}, headers=auth_headers)
    assert blank.status_code == 400

    bad = client.put(f"{API}/files/{a}/parent", json={"parentId": b}, headers=auth_headers)
    assert bad.status_code == 400
    assert "子目录" in bad.json()["msg"]

    ok = client.put(f"{API}/files/{b}/parent", json={"parentId": None}, headers=auth_headers)
    assert ok.status_code == 200
    assert ok.json()["data"]["parent_folder_id"] is None


def test_star_archive_and_views(client: TestClient, auth_headers):
    entry = _upload(client, auth_headers, "report.txt")
    client.put(f"{API}/files/{entry['id']}/star", json={"value": True}, headers=auth_headers)

    starred = client.get(f"{API}/files/views/starred", headers=auth_headers).json()["data"]
    assert [i["id"] for i in starred] == [entry["id"]]

    client.put(f"{API}/files/{entry['id']}/archive", json={"value": True}, headers=auth_headers)
    root = client.get(f"{API}/files", headers=auth_headers).json()["data"]
    assert entry["id"] not in [i["id"] for i in root]
    archived = client.get(f"{API}/files/views/archived", headers=auth_headers).json()["data"]
    assert [i["id"] for i in archived] == [entry["id"]]

    assert client.get(f"{API}/files/views/unknown", headers=auth_headers).status_code == 422


def test_delete_needs_confirm_flag(client: TestClient, auth_headers):
    folder = _mkdir(client, auth_headers, "trash")
    _upload(client, auth_headers, "x.txt", parent=folder)

    refused = client.delete(f"{API}/files/{folder}", headers=auth_headers)
    assert refused.status_code == 400

    done = client.delete(f"{API}/files/{folder}", params={"confirm": "true"}, headers=auth_headers)
    assert done.status_code == 200
    assert len(done.json()["data"]["deletedIds"]) == 2
    assert done.json()["data"]["storageCleanup"]["ok"] is True


def test_folder_tree_excludes_moving_entry(client: TestClient, auth_headers):
    keep = _mkdir(client, auth_headers, "keep")
    moving = _mkdir(client, auth_headers, "moving")
    _upload(client, auth_headers, "file.txt")

    resp = client.get(f"{API}/folders/tree", params={"excludeId": moving}, headers=auth_headers)
    assert [c["id"] for c in resp.json()["data"]] == [keep]


def test_details_patch_and_categories(client: TestClient, auth_headers):
    entry = _upload(client, auth_headers, "contract.txt")
    category = client.post(f"{API}/categories", json={"name": "Legal"}, headers=auth_headers).json()["data"]

    patched = client.patch(
        f"{API}/files/{entry['id']}",
        json={"categoryId": category["id"], "sharedWith": ["client@example.com"]},
        headers=auth_headers,
    ).json()["data"]
    assert patched["category_id"] == category["id"]
    assert patched["shared_with"] == ["client@example.com"]

    listed = client.get(f"{API}/categories", headers=auth_headers).json()["data"]
    assert [c["name"] for c in listed] == ["Legal"]

    removed = client.delete(f"{API}/categories/{category['id']}", headers=auth_headers)
    assert removed.json()["data"]["detachedFiles"] == 1
    detail = client.get(f"{API}/files/{entry['id']}", headers=auth_headers).json()["data"]
    assert detail["category_id"] is None


def test_share_link_flow(client: TestClient, auth_headers):
    entry = _upload(client, auth_headers, "deliverable.txt", b"final")

    issued = client.post(f"{API}/files/{entry['id']}/shares", json={"accessLevel": "view"}, headers=auth_headers)
    assert issued.status_code == 200
    token = issued.json()["data"]["token"]
    assert issued.json()["data"]["shareUrl"].endswith(f"/share?token={token}")

    resolved = client.get(f"{API}/shares/resolve", params={"token": token})
    assert resolved.status_code == 200
    assert resolved.json()["data"]["entry"]["id"] == entry["id"]

    download = client.get(f"{API}/shares/download", params={"token": token})
    assert download.content == b"final"

    missing = client.get(f"{API}/shares/resolve", params={"token": "nope"})
    assert missing.status_code == 404
    assert missing.json()["msg"] == "该分享链接已失效"

    past = client.post(
        f"{API}/files/{entry['id']}/shares",
        json={"expiresAt": "2000-01-01T00:00:00Z"},
        headers=auth_headers,
    )
    assert past.status_code == 400


def test_selection_and_bulk_flow(client: TestClient, auth_headers):
    folder = _mkdir(client, auth_headers, "batch")
    ids = [_upload(client, auth_headers, f"{n}.txt", parent=folder)["id"] for n in ("a", "b", "c")]

    nav = client.post(f"{API}/selection/navigate", json={"folderId": folder}, headers=auth_headers).json()["data"]
    assert nav["stale"] is False
    assert [i["id"] for i in nav["items"]] == ids

    client.post(f"{API}/selection/toggle", json={"id": ids[0]}, headers=auth_headers)
    state = client.get(f"{API}/selection", headers=auth_headers).json()["data"]["state"]
    assert state["selected"] == [ids[0]]

    client.post(f"{API}/selection/select-all", json={}, headers=auth_headers)
    bulk = client.post(f"{API}/selection/bulk", json={"action": "delete"}, headers=auth_headers)
    assert bulk.status_code == 400
    assert bulk.json()["msg"] == "删除操作需要确认"
    state = client.get(f"{API}/selection", headers=auth_headers).json()["data"]["state"]
    assert sorted(state["selected"]) == sorted(ids)

    client.post(f"{API}/selection/select-all", json={"ids": ids[:2]}, headers=auth_headers)
    bulk = client.post(f"{API}/selection/bulk", json={"action": "delete", "confirm": True}, headers=auth_headers)
    body = bulk.json()["data"]
    assert body["result"]["succeededCount"] == 2
    assert [i["id"] for i in body["items"]] == [ids[2]]

    cleared = client.delete(f"{API}/selection", headers=auth_headers).json()["data"]["state"]
    assert cleared["selected"] == []


class _UnreachableStore:
    def load(self, user_id):
        raise redis.ConnectionError("connection refused")

    def save(self, user_id, raw):
        raise redis.ConnectionError("connection refused")

    drop = load


def test_selection_returns_503_when_view_state_store_is_down(client: TestClient, auth_headers, monkeypatch):
    monkeypatch.setattr(view_state_module.view_state_service, "_backend", _UnreachableStore())

    response = client.get(f"{API}/selection", headers=auth_headers)

    assert response.status_code == 503
    assert response.json()["code"] == 503
