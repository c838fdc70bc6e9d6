"""Pure functions over an immutable library forest.

Every mutation of the tree, on the server and in the client-side store, goes
through these functions. None of them modifies its input: each returns a new
forest, and returns the input object itself when nothing changed, so callers
can detect a no-op with ``is``.

A forest is a sequence of root ``TreeNode`` objects; folders carry their
children in display order.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from ..schemas.tree import FILE, FOLDER, Forest, TreeNode, TreeRow

# Title of the per-user soft-delete folder, always at forest root.
TRASH_FOLDER_TITLE = "回收站"


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def iter_nodes(forest: Sequence[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node depth-first, parents before children."""
    for node in forest:
        yield node
        yield from iter_nodes(node.children)


def find_node(forest: Sequence[TreeNode], node_id: str) -> Optional[TreeNode]:
    """Depth-first search by id."""
    for node in forest:
        if node.id == node_id:
            return node
        found = find_node(node.children, node_id)
        if found is not None:
            return found
    return None


def find_node_by_problem_id(forest: Sequence[TreeNode], problem_id: str) -> Optional[TreeNode]:
    """First file node referencing *problem_id*."""
    for node in iter_nodes(forest):
        if node.type == FILE and node.problem_id == problem_id:
            return node
    return None


def locate(
    forest: Sequence[TreeNode], node_id: str, _parent_id: Optional[str] = None
) -> Optional[Tuple[Optional[str], int]]:
    """Return ``(parent_id, index)`` of *node_id*, or None if absent.

    The parent is taken from the tree's shape, not from ``node.parent_id``.
    """
    for index, node in enumerate(forest):
        if node.id == node_id:
            return _parent_id, index
        found = locate(node.children, node_id, node.id)
        if found is not None:
            return found
    return None


def find_parent_id(forest: Sequence[TreeNode], node_id: str) -> Optional[str]:
    """Parent id of *node_id* from the tree's shape; None for roots and unknown ids."""
    position = locate(forest, node_id)
    return position[0] if position is not None else None


def siblings_of(forest: Sequence[TreeNode], parent_id: Optional[str]) -> Tuple[TreeNode, ...]:
    """Children of *parent_id*, or the roots when it is None. Empty if unknown."""
    if parent_id is None:
        return tuple(forest)
    parent = find_node(forest, parent_id)
    return parent.children if parent is not None else ()


def find_trash_folder(forest: Sequence[TreeNode]) -> Optional[TreeNode]:
    """The root-level folder titled ``TRASH_FOLDER_TITLE``, if present."""
    for node in forest:
        if node.type == FOLDER and node.title == TRASH_FOLDER_TITLE:
            return node
    return None


def collect_descendant_problem_ids(node: Optional[TreeNode]) -> List[str]:
    """Every problem id in *node*'s subtree (node included), depth-first, no duplicates."""
    if node is None:
        return []
    seen: Dict[str, None] = {}
    for current in iter_nodes((node,)):
        if current.type == FILE and current.problem_id:
            seen.setdefault(current.problem_id, None)
    return list(seen)


def collect_descendant_ids(node: Optional[TreeNode]) -> List[str]:
    """Ids of *node* and everything below it."""
    if node is None:
        return []
    return [current.id for current in iter_nodes((node,))]


def is_descendant(forest: Sequence[TreeNode], ancestor_id: str, candidate_id: str) -> bool:
    """True if *candidate_id* sits anywhere below *ancestor_id* (full subtree walk)."""
    ancestor = find_node(forest, ancestor_id)
    if ancestor is None:
        return False
    return find_node(ancestor.children, candidate_id) is not None


# ---------------------------------------------------------------------------
# Flat rows <-> forest
# ---------------------------------------------------------------------------

def _as_row(row: Any) -> TreeRow:
    if isinstance(row, TreeRow):
        return row
    return TreeRow.model_validate(row)


def build_tree(rows: Iterable[Any]) -> Forest:
    """Nest flat rows into a forest in linear time.

    *rows* may be ``TreeRow`` objects, dicts, or ORM rows. Sibling order follows
    row order, so callers sort by ``sort_order`` first. A row whose parent is
    unknown, is not a folder, or lies on a parent cycle becomes a root: rows are
    never dropped.
    """
    ordered = [_as_row(row) for row in rows]
    by_id: Dict[str, TreeRow] = {row.id: row for row in ordered}

    children: Dict[str, List[str]] = {row.id: [] for row in ordered}
    root_ids: List[str] = []
    for row in ordered:
        parent = by_id.get(row.parent_id) if row.parent_id else None
        if parent is not None and parent.type == FOLDER and parent.id != row.id:
            children[parent.id].append(row.id)
        else:
            root_ids.append(row.id)

    visited: Set[str] = set()

    def assemble(node_id: str, parent_id: Optional[str]) -> TreeNode:
        visited.add(node_id)
        row = by_id[node_id]
        kids = tuple(
            assemble(child_id, node_id) for child_id in children[node_id] if child_id not in visited
        )
        return TreeNode(
            id=row.id,
            title=row.title,
            type=row.type,
            parent_id=parent_id,
            problem_id=row.problem_id,
            sort_order=row.sort_order,
            children=kids,
        )

    forest = [assemble(node_id, None) for node_id in root_ids]

    # Rows caught in a parent cycle never hang off a root; surface them as roots.
    for row in ordered:
        if row.id not in visited:
            forest.append(assemble(row.id, None))

    return tuple(forest)


def flatten(forest: Sequence[TreeNode]) -> List[TreeRow]:
    """Inverse of ``build_tree``: pre-order rows with parent ids from the tree's shape."""
    rows: List[TreeRow] = []

    def walk(nodes: Sequence[TreeNode], parent_id: Optional[str]) -> None:
        for node in nodes:
            rows.append(TreeRow(
                id=node.id,
                title=node.title,
                type=node.type,
                parent_id=parent_id,
                problem_id=node.problem_id,
                sort_order=node.sort_order,
            ))
            walk(node.children, node.id)

    walk(forest, None)
    return rows


# ---------------------------------------------------------------------------
# Structural edits
# ---------------------------------------------------------------------------

def _filter_forest(forest: Sequence[TreeNode], drop) -> Sequence[TreeNode]:
    """Remove every node for which ``drop(node)`` is true, at any depth.

    Returns *forest* itself when nothing was removed.
    """
    changed = False
    kept: List[TreeNode] = []
    for node in forest:
        if drop(node):
            changed = True
            continue
        if node.children:
            new_children = _filter_forest(node.children, drop)
            if new_children is not node.children:
                node = node.model_copy(update={"children": tuple(new_children)})
                changed = True
        kept.append(node)
    return tuple(kept) if changed else forest


def detach_node(forest: Sequence[TreeNode], node_id: str) -> Tuple[Sequence[TreeNode], Optional[TreeNode]]:
    """Remove *node_id* (and its subtree) from wherever it lives.

    Returns ``(forest', removed)``; ``(forest, None)`` when the id is unknown.
    """
    removed = find_node(forest, node_id)
    if removed is None:
        return forest, None
    return _filter_forest(forest, lambda node: node.id == node_id), removed


def insert_node(
    forest: Sequence[TreeNode], node: Optional[TreeNode], target_parent_id: Optional[str]
) -> Sequence[TreeNode]:
    """Append *node* as the last child of *target_parent_id*, or as a new root.

    An unknown or non-folder target leaves the forest unchanged.
    """
    if node is None:
        return forest
    placed = node.model_copy(update={"parent_id": target_parent_id})
    if target_parent_id is None:
        return tuple(forest) + (placed,)

    target = find_node(forest, target_parent_id)
    if target is None or target.type != FOLDER:
        return forest

    def append(nodes: Sequence[TreeNode]) -> Sequence[TreeNode]:
        changed = False
        out: List[TreeNode] = []
        for current in nodes:
            if current.id == target_parent_id:
                current = current.model_copy(update={"children": current.children + (placed,)})
                changed = True
            elif not changed and current.children:
                new_children = append(current.children)
                if new_children is not current.children:
                    current = current.model_copy(update={"children": tuple(new_children)})
                    changed = True
            out.append(current)
        return tuple(out) if changed else nodes

    return append(forest)


def can_move(forest: Sequence[TreeNode], node_id: str, target_parent_id: Optional[str]) -> bool:
    """Whether moving *node_id* under *target_parent_id* keeps the forest valid.

    Rejects unknown nodes, self-moves, targets inside the node's own subtree,
    and targets that are not folders.
    """
    node = find_node(forest, node_id)
    if node is None:
        return False
    if target_parent_id is None:
        return True
    if target_parent_id == node_id:
        return False
    target = find_node(forest, target_parent_id)
    if target is None or target.type != FOLDER:
        return False
    return find_node(node.children, target_parent_id) is None


def move_node(
    forest: Sequence[TreeNode], node_id: str, target_parent_id: Optional[str]
) -> Sequence[TreeNode]:
    """Reparent *node_id* as the last child of *target_parent_id* (root when None).

    Invalid moves (see ``can_move``) and moves to the current parent return
    the forest unchanged.
    """
    if not can_move(forest, node_id, target_parent_id):
        return forest
    position = locate(forest, node_id)
    if position is not None and position[0] == target_parent_id:
        return forest
    detached, removed = detach_node(forest, node_id)
    return insert_node(detached, removed, target_parent_id)


def reorder_siblings(
    forest: Sequence[TreeNode], parent_id: Optional[str], ordered_ids: Sequence[str]
) -> Sequence[TreeNode]:
    """Put the mentioned children of *parent_id* first, in the given sequence.

    Siblings not in *ordered_ids* follow in their previous relative order.
    Ids that are not children of *parent_id* are ignored.
    """
    def reorder(siblings: Tuple[TreeNode, ...]) -> Tuple[TreeNode, ...]:
        by_id = {node.id: node for node in siblings}
        wanted = [by_id[i] for i in dict.fromkeys(ordered_ids) if i in by_id]
        wanted_ids = {node.id for node in wanted}
        result = tuple(wanted + [node for node in siblings if node.id not in wanted_ids])
        return siblings if result == siblings else result

    if parent_id is None:
        roots = tuple(forest)
        reordered = reorder(roots)
        return forest if reordered is roots else reordered

    parent = find_node(forest, parent_id)
    if parent is None:
        return forest
    reordered = reorder(parent.children)
    if reordered is parent.children:
        return forest

    def replace(nodes: Sequence[TreeNode]) -> Sequence[TreeNode]:
        changed = False
        out: List[TreeNode] = []
        for current in nodes:
            if current.id == parent_id:
                current = current.model_copy(update={"children": reordered})
                changed = True
            elif not changed and current.children:
                new_children = replace(current.children)
                if new_children is not current.children:
                    current = current.model_copy(update={"children": tuple(new_children)})
                    changed = True
            out.append(current)
        return tuple(out) if changed else nodes

    return replace(forest)


def prune_by_problem_ids(forest: Sequence[TreeNode], problem_ids: Iterable[str]) -> Sequence[TreeNode]:
    """Remove every file node whose problem is in *problem_ids*."""
    doomed = set(problem_ids)
    if not doomed:
        return forest
    return _filter_forest(forest, lambda node: node.type == FILE and node.problem_id in doomed)


def remove_nodes(forest: Sequence[TreeNode], node_ids: Iterable[str]) -> Sequence[TreeNode]:
    """Remove the given nodes together with their subtrees."""
    doomed = set(node_ids)
    if not doomed:
        return forest
    return _filter_forest(forest, lambda node: node.id in doomed)
