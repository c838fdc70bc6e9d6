"""Integration tests for the bootstrap, folder, node and problem endpoints."""

import pytest
from helpers import make_problem
from sqlalchemy.exc import IntegrityError

from problembox.repositories.tree_repository import TreeNodeRepository
from problembox.services.tree_service import LibraryTreeService

TRASH = "回收站"


def _bootstrap(client):
    resp = client.get("/api/bootstrap")
    assert resp.status_code == 200
    return resp.json()


def _roots(client):
    return {node["title"]: node for node in _bootstrap(client)["tree"]}


def _trash_id(client):
    return _roots(client)[TRASH]["id"]


def _folder(client, title, parent_id=None):
    resp = client.post("/api/folders", json={"title": title, "parentId": parent_id})
    assert resp.status_code == 200, resp.text
    return resp.json()["node"]


def _import(client, title="Roots", parent_folder_id=None, **overrides):
    resp = client.post("/api/problems", json=make_problem(title, parent_folder_id=parent_folder_id, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestBootstrap:

    def test_creates_trash_folder_once(self, client):
        first = _bootstrap(client)
        second = _bootstrap(client)
        assert [n["title"] for n in first["tree"]] == [TRASH]
        assert first["tree"][0]["id"] == second["tree"][0]["id"]
        assert first["profile"]["id"] == "local-user"
        assert first["problems"] == []
        assert first["favorites"] == []

    def test_snapshot_is_nested_and_camel_case(self, client):
        algebra = _folder(client, "Algebra")
        created = _import(client, "Roots", parent_folder_id=algebra["id"])

        data = _bootstrap(client)
        algebra_node = next(n for n in data["tree"] if n["id"] == algebra["id"])
        child = algebra_node["children"][0]
        assert child["type"] == "file"
        assert child["problemId"] == created["problem"]["id"]
        assert child["parentId"] == algebra["id"]
        assert data["problems"][0]["title"] == "Roots"


class TestFolders:

    def test_create_root_and_nested(self, client):
        parent = _folder(client, "  Algebra  ")
        child = _folder(client, "Linear", parent["id"])
        assert parent["title"] == "Algebra"
        assert parent["parentId"] is None
        assert child["parentId"] == parent["id"]
        assert child["type"] == "folder"

    def test_blank_title_rejected(self, client):
        resp = client.post("/api/folders", json={"title": "   "})
        assert resp.status_code == 422

    def test_unknown_parent_rejected(self, client):
        resp = client.post("/api/folders", json={"title": "X", "parentId": "missing"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_trash_title_reserved_at_root(self, client):
        _bootstrap(client)
        resp = client.post("/api/folders", json={"title": TRASH})
        assert resp.status_code == 400
        assert resp.json()["details"] == {"field": "title"}
        assert [n["title"] for n in _bootstrap(client)["tree"]].count(TRASH) == 1

    def test_trash_title_allowed_when_nested(self, client):
        parent = _folder(client, "Archive")
        assert _folder(client, TRASH, parent["id"])["parentId"] == parent["id"]


class TestSoftDeleteAndRestore:

    def test_soft_delete_moves_under_trash(self, client):
        folder = _folder(client, "Algebra")
        resp = client.delete(f"/api/nodes/{folder['id']}")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "affectedIds": [folder["id"]]}

        trash = _roots(client)[TRASH]
        assert [c["id"] for c in trash["children"]] == [folder["id"]]

    def test_batch_soft_delete(self, client):
        a = _folder(client, "A")
        b = _folder(client, "B")
        resp = client.post("/api/nodes/batch-delete", json={"nodeIds": [a["id"], b["id"], "missing"]})
        assert resp.json()["affectedIds"] == [a["id"], b["id"]]
        assert [c["title"] for c in _roots(client)[TRASH]["children"]] == ["A", "B"]

    def test_trash_folder_is_never_soft_deleted(self, client):
        trash_id = _trash_id(client)
        resp = client.delete(f"/api/nodes/{trash_id}")
        assert resp.json()["affectedIds"] == []

    def test_restore_moves_to_root(self, client):
        folder = _folder(client, "Algebra")
        client.delete(f"/api/nodes/{folder['id']}")
        resp = client.post("/api/nodes/restore", json={"nodeId": folder["id"]})
        assert resp.status_code == 200
        roots = _roots(client)
        assert "Algebra" in roots
        assert roots[TRASH]["children"] == []

    def test_restore_unknown_node_is_404(self, client):
        resp = client.post("/api/nodes/restore", json={"nodeId": "missing"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "NODE_NOT_FOUND"


class TestHardDelete:

    def test_cascades_to_problems_and_favorites(self, client):
        algebra = _folder(client, "Algebra")
        inner = _folder(client, "Linear", algebra["id"])
        p1 = _import(client, "Q1", parent_folder_id=algebra["id"])
        p2 = _import(client, "Q2", parent_folder_id=inner["id"])
        keep = _import(client, "Q3")
        client.post("/api/favorites/toggle", json={"problemId": p1["problem"]["id"]})
        client.post("/api/favorites/toggle", json={"problemId": keep["problem"]["id"]})

        resp = client.post("/api/nodes/hard-delete", json={"nodeId": algebra["id"]})
        assert resp.status_code == 200
        body = resp.json()
        assert set(body["deletedProblemIds"]) == {p1["problem"]["id"], p2["problem"]["id"]}
        assert set(body["deletedIds"]) >= {algebra["id"], inner["id"], p1["node"]["id"]}

        data = _bootstrap(client)
        assert [p["id"] for p in data["problems"]] == [keep["problem"]["id"]]
        assert data["favorites"] == [keep["problem"]["id"]]
        assert "Algebra" not in {n["title"] for n in data["tree"]}


class TestMoves:

    def test_move_node_into_folder(self, client):
        a = _folder(client, "A")
        b = _folder(client, "B")
        resp = client.post("/api/nodes/move-node", json={"nodeId": b["id"], "targetFolderId": a["id"]})
        assert resp.status_code == 200
        assert [c["id"] for c in _roots(client)["A"]["children"]] == [b["id"]]

    def test_move_into_descendant_rejected(self, client):
        a = _folder(client, "A")
        b = _folder(client, "B", a["id"])
        c = _folder(client, "C", b["id"])
        resp = client.post("/api/nodes/move-node", json={"nodeId": a["id"], "targetFolderId": c["id"]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_MOVE"

    def test_self_move_rejected(self, client):
        a = _folder(client, "A")
        resp = client.post("/api/nodes/move-node", json={"nodeId": a["id"], "targetFolderId": a["id"]})
        assert resp.json()["error"] == "INVALID_MOVE"

    def test_trash_cannot_be_moved(self, client):
        a = _folder(client, "A")
        resp = client.post(
            "/api/nodes/move-node", json={"nodeId": _trash_id(client), "targetFolderId": a["id"]}
        )
        assert resp.status_code == 400

    def test_trash_titled_folder_cannot_reach_root(self, client):
        archive = _folder(client, "Archive")
        nested = _folder(client, TRASH, archive["id"])

        resp = client.post("/api/nodes/move-node", json={"nodeId": nested["id"], "targetFolderId": None})
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_MOVE"

        client.delete(f"/api/nodes/{nested['id']}")
        resp = client.post("/api/nodes/restore", json={"nodeId": nested["id"]})
        assert resp.status_code == 400
        assert [n["title"] for n in _bootstrap(client)["tree"]].count(TRASH) == 1

    def test_move_into_file_rejected(self, client):
        a = _folder(client, "A")
        created = _import(client)
        resp = client.post(
            "/api/nodes/move-node", json={"nodeId": a["id"], "targetFolderId": created["node"]["id"]}
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_move_problem_by_problem_id(self, client):
        a = _folder(client, "A")
        created = _import(client)
        resp = client.post(
            "/api/nodes/move-problem",
            json={"problemId": created["problem"]["id"], "targetFolderId": a["id"]},
        )
        assert resp.status_code == 200
        assert [c["id"] for c in _roots(client)["A"]["children"]] == [created["node"]["id"]]

    def test_move_unknown_problem_is_404(self, client):
        resp = client.post("/api/nodes/move-problem", json={"problemId": "missing"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "PROBLEM_NOT_FOUND"

    def test_moved_node_sorts_last(self, client):
        a = _folder(client, "A")
        b = _folder(client, "B")
        client.post("/api/nodes/move-node", json={"nodeId": a["id"], "targetFolderId": None})
        titles = [n["title"] for n in _bootstrap(client)["tree"]]
        assert titles.index("A") > titles.index("B")


class TestReorder:

    def test_reorder_persists(self, client):
        a = _folder(client, "A")
        b = _folder(client, "B")
        c = _folder(client, "C")
        resp = client.post("/api/nodes/reorder", json={"orderedIds": [c["id"], a["id"], b["id"]]})
        assert resp.status_code == 200
        titles = [n["title"] for n in _bootstrap(client)["tree"] if n["title"] != TRASH]
        assert titles == ["C", "A", "B"]

    def test_unknown_ids_rejected(self, client):
        a = _folder(client, "A")
        resp = client.post("/api/nodes/reorder", json={"orderedIds": [a["id"], "missing"]})
        assert resp.status_code == 400

    def test_duplicates_rejected(self, client):
        a = _folder(client, "A")
        resp = client.post("/api/nodes/reorder", json={"orderedIds": [a["id"], a["id"]]})
        assert resp.status_code == 422


class TestProblems:

    def test_import_normalises_difficulty(self, client):
        created = _import(client, difficulty="Impossible")
        assert created["problem"]["difficulty"] == "medium"
        assert created["node"]["title"] == "Roots"
        assert created["node"]["parentId"] is None

    def test_import_into_unknown_folder_rejected(self, client):
        resp = client.post("/api/problems", json=make_problem(parent_folder_id="missing"))
        assert resp.status_code == 400

    def test_delete_problem_removes_file_node(self, client):
        created = _import(client)
        resp = client.delete(f"/api/problems/{created['problem']['id']}")
        assert resp.status_code == 200
        data = _bootstrap(client)
        assert data["problems"] == []
        assert [n["title"] for n in data["tree"]] == [TRASH]

    def test_delete_unknown_problem_is_404(self, client):
        resp = client.delete("/api/problems/missing")
        assert resp.status_code == 404

    def test_batch_delete_ignores_unknown(self, client):
        one = _import(client, "One")
        two = _import(client, "Two")
        resp = client.post(
            "/api/problems/batch-delete",
            json={"problemIds": [one["problem"]["id"], two["problem"]["id"], "missing"]},
        )
        assert resp.status_code == 200
        assert _bootstrap(client)["problems"] == []

    def test_toggle_favorite(self, client):
        created = _import(client)
        pid = created["problem"]["id"]
        assert client.post("/api/favorites/toggle", json={"problemId": pid}).json() == {"favorites": [pid]}
        assert client.post("/api/favorites/toggle", json={"problemId": pid}).json() == {"favorites": []}


class TestProfile:

    def test_update_profile(self, client):
        _bootstrap(client)
        resp = client.post("/api/profile", json={"name": "  Ada  ", "plan": "pro"})
        assert resp.status_code == 200
        assert resp.json()["profile"]["name"] == "Ada"
        assert resp.json()["profile"]["plan"] == "pro"

    def test_invalid_plan_rejected(self, client):
        resp = client.post("/api/profile", json={"plan": "enterprise"})
        assert resp.status_code == 422


class TestTrashUniqueness:

    def test_database_refuses_second_root_trash(self, client, db):
        _bootstrap(client)
        with pytest.raises(IntegrityError):
            TreeNodeRepository(db).create("local-user", TRASH, "folder")
        db.rollback()

    def test_lost_creation_race_returns_existing_trash(self, client, db):
        trash_id = _trash_id(client)
        service = LibraryTreeService(db)
        lookup = service.repo.find_root_folder
        misses = [None]

        def first_lookup_misses(user_id, title):
            return misses.pop() if misses else lookup(user_id, title)

        service.repo.find_root_folder = first_lookup_misses
        assert service.ensure_trash_folder("local-user").id == trash_id
        assert [n["title"] for n in _bootstrap(client)["tree"]].count(TRASH) == 1
