"""Tests for the pure forest functions shared by the server and the tree store."""

import itertools

from helpers import file, folder, shape

from problembox.schemas.tree import TreeRow
from problembox.tree.algorithms import (
    TRASH_FOLDER_TITLE,
    build_tree,
    can_move,
    collect_descendant_ids,
    collect_descendant_problem_ids,
    detach_node,
    find_node,
    find_node_by_problem_id,
    find_parent_id,
    find_trash_folder,
    flatten,
    insert_node,
    is_descendant,
    iter_nodes,
    locate,
    move_node,
    prune_by_problem_ids,
    remove_nodes,
    reorder_siblings,
)


def _library():
    """Algebra/{Q1, Linear/{Q2, Q3}}, Geometry/{Q4}, loose Q5, plus trash."""
    return (
        folder(
            "F1",
            file("Q1", "P1"),
            folder("F2", file("Q2", "P2"), file("Q3", "P3")),
            title="Algebra",
        ),
        folder("F3", file("Q4", "P4"), title="Geometry"),
        file("Q5", "P5"),
        folder("TRASH", title=TRASH_FOLDER_TITLE),
    )


def _assert_consistent(forest):
    """Every node's parent_id matches where it sits in the tree."""
    for node in iter_nodes(forest):
        parent_id, _ = locate(forest, node.id)
        assert node.parent_id == parent_id


class TestLookup:

    def test_find_node_at_any_depth(self):
        forest = _library()
        assert find_node(forest, "F1").title == "Algebra"
        assert find_node(forest, "Q3").problem_id == "P3"
        assert find_node(forest, "missing") is None

    def test_find_node_by_problem_id(self):
        assert find_node_by_problem_id(_library(), "P4").id == "Q4"
        assert find_node_by_problem_id(_library(), "nope") is None

    def test_locate_reports_parent_and_index(self):
        forest = _library()
        assert locate(forest, "F3") == (None, 1)
        assert locate(forest, "Q3") == ("F2", 1)
        assert locate(forest, "missing") is None

    def test_find_parent_id(self):
        forest = _library()
        assert find_parent_id(forest, "Q2") == "F2"
        assert find_parent_id(forest, "F1") is None
        assert find_parent_id(forest, "missing") is None

    def test_find_trash_folder_matches_root_title(self):
        assert find_trash_folder(_library()).id == "TRASH"
        nested = (folder("F1", folder("X", title=TRASH_FOLDER_TITLE)),)
        assert find_trash_folder(nested) is None

    def test_is_descendant_walks_the_whole_subtree(self):
        forest = _library()
        assert is_descendant(forest, "F1", "F2")
        assert is_descendant(forest, "F1", "Q3")
        assert not is_descendant(forest, "F2", "F1")
        assert not is_descendant(forest, "F1", "F1")


class TestCollectDescendants:

    def test_problem_ids_cover_entire_subtree(self):
        forest = _library()
        assert collect_descendant_problem_ids(find_node(forest, "F1")) == ["P1", "P2", "P3"]

    def test_problem_ids_have_no_duplicates(self):
        node = folder("F", file("A", "P1"), folder("G", file("B", "P1"), file("C", "P2")))
        assert collect_descendant_problem_ids(node) == ["P1", "P2"]

    def test_file_node_yields_its_own_problem(self):
        assert collect_descendant_problem_ids(file("Q", "P9")) == ["P9"]

    def test_empty_folder_and_none(self):
        assert collect_descendant_problem_ids(folder("F")) == []
        assert collect_descendant_problem_ids(None) == []

    def test_descendant_ids_include_the_node(self):
        forest = _library()
        assert collect_descendant_ids(find_node(forest, "F2")) == ["F2", "Q2", "Q3"]


class TestBuildTree:

    def test_round_trip_through_flatten(self):
        forest = _library()
        assert build_tree(flatten(forest)) == forest

    def test_flatten_is_pre_order(self):
        ids = [row.id for row in flatten(_library())]
        assert ids == ["F1", "Q1", "F2", "Q2", "Q3", "F3", "Q4", "Q5", "TRASH"]

    def test_orphan_rows_become_roots(self):
        rows = [
            {"id": "F1", "title": "A", "type": "folder"},
            {"id": "Q1", "title": "q", "type": "file", "parentId": "gone", "problemId": "P1"},
        ]
        forest = build_tree(rows)
        assert shape(forest) == (("F1", None, ()), ("Q1", None, ()))

    def test_row_under_file_becomes_root(self):
        rows = [
            TreeRow(id="Q1", title="q", type="file", problem_id="P1"),
            TreeRow(id="Q2", title="q", type="file", parent_id="Q1", problem_id="P2"),
        ]
        assert [node.id for node in build_tree(rows)] == ["Q1", "Q2"]

    def test_self_parent_becomes_root(self):
        rows = [TreeRow(id="F1", title="a", type="folder", parent_id="F1")]
        assert shape(build_tree(rows)) == (("F1", None, ()),)

    def test_parent_cycle_keeps_every_row(self):
        rows = [
            TreeRow(id="A", title="a", type="folder", parent_id="B"),
            TreeRow(id="B", title="b", type="folder", parent_id="A"),
        ]
        forest = build_tree(rows)
        assert sorted(node.id for node in iter_nodes(forest)) == ["A", "B"]
        _assert_consistent(forest)

    def test_sibling_order_follows_row_order(self):
        rows = [
            TreeRow(id="F", title="f", type="folder"),
            TreeRow(id="b", title="b", type="folder", parent_id="F", sort_order=2),
            TreeRow(id="a", title="a", type="folder", parent_id="F", sort_order=1),
        ]
        assert [c.id for c in build_tree(rows)[0].children] == ["b", "a"]


class TestDetachInsert:

    def test_detach_returns_subtree(self):
        forest, removed = detach_node(_library(), "F2")
        assert removed.id == "F2"
        assert [c.id for c in removed.children] == ["Q2", "Q3"]
        assert find_node(forest, "Q2") is None

    def test_detach_unknown_is_noop(self):
        forest = _library()
        result, removed = detach_node(forest, "missing")
        assert result is forest
        assert removed is None

    def test_detach_then_insert_restores_node(self):
        forest = _library()
        pruned, removed = detach_node(forest, "Q1")
        restored = insert_node(pruned, removed, "F1")
        assert find_node(restored, "Q1") == find_node(forest, "Q1")
        assert [c.id for c in find_node(restored, "F1").children] == ["F2", "Q1"]

    def test_insert_at_root_appends(self):
        forest = insert_node((), file("Q", "P"), None)
        assert shape(forest) == (("Q", None, ()),)

    def test_insert_into_unknown_or_file_target_is_noop(self):
        forest = _library()
        assert insert_node(forest, file("Q9", "P9"), "missing") is forest
        assert insert_node(forest, file("Q9", "P9"), "Q5") is forest

    def test_detach_does_not_mutate_input(self):
        forest = _library()
        before = shape(forest)
        detach_node(forest, "Q2")
        assert shape(forest) == before


class TestMoveNode:

    def test_scenario_b_move_file_to_root(self):
        forest = (folder("F1", file("Q1", "P1"), title="Algebra"),)
        moved = move_node(forest, "Q1", None)
        assert shape(moved) == (("F1", None, ()), ("Q1", None, ()))
        assert find_node(moved, "Q1").problem_id == "P1"

    def test_move_into_sibling_folder(self):
        moved = move_node(_library(), "F2", "F3")
        assert [c.id for c in find_node(moved, "F3").children] == ["Q4", "F2"]
        _assert_consistent(moved)

    def test_self_move_is_noop(self):
        forest = _library()
        assert not can_move(forest, "F1", "F1")
        assert move_node(forest, "F1", "F1") is forest

    def test_move_into_deep_descendant_is_noop(self):
        forest = _library()
        assert not can_move(forest, "F1", "F2")
        assert move_node(forest, "F1", "F2") is forest

    def test_move_into_file_is_noop(self):
        forest = _library()
        assert move_node(forest, "F3", "Q5") is forest

    def test_move_to_current_parent_is_noop(self):
        forest = _library()
        assert move_node(forest, "Q2", "F2") is forest

    def test_any_move_sequence_keeps_forest_acyclic(self):
        forest = _library()
        all_ids = sorted(node.id for node in iter_nodes(forest))
        folders = [None] + [n.id for n in iter_nodes(forest) if n.is_folder]

        for node_id, target in itertools.product(all_ids, folders):
            forest = move_node(forest, node_id, target)
            assert sorted(node.id for node in iter_nodes(forest)) == all_ids
            _assert_consistent(forest)
            for node in iter_nodes(forest):
                assert find_node(node.children, node.id) is None


class TestReorderSiblings:

    def _roots(self):
        return (folder("a"), folder("b"), folder("c"), folder("d"))

    def test_partial_reorder_keeps_unmentioned_order(self):
        result = reorder_siblings(self._roots(), None, ["d", "b"])
        assert [n.id for n in result] == ["d", "b", "a", "c"]

    def test_reorder_nested_children(self):
        forest = _library()
        result = reorder_siblings(forest, "F2", ["Q3"])
        assert [c.id for c in find_node(result, "F2").children] == ["Q3", "Q2"]
        assert find_node(result, "F3") is find_node(forest, "F3")

    def test_foreign_ids_are_ignored(self):
        result = reorder_siblings(self._roots(), None, ["x", "c"])
        assert [n.id for n in result] == ["c", "a", "b", "d"]

    def test_unchanged_order_returns_same_forest(self):
        forest = self._roots()
        assert reorder_siblings(forest, None, ["a", "b"]) is forest
        assert reorder_siblings(forest, "missing", ["a"]) is forest


class TestPrune:

    def test_prune_removes_every_reference(self):
        forest = (folder("F", file("A", "P1"), file("B", "P2")), file("C", "P1"))
        result = prune_by_problem_ids(forest, {"P1"})
        assert shape(result) == (("F", None, (("B", "F", ()),)),)

    def test_prune_nothing_returns_same_forest(self):
        forest = _library()
        assert prune_by_problem_ids(forest, set()) is forest
        assert prune_by_problem_ids(forest, {"unknown"}) is forest

    def test_remove_nodes_drops_subtrees(self):
        result = remove_nodes(_library(), ["F1", "Q5"])
        assert [n.id for n in result] == ["F3", "TRASH"]
