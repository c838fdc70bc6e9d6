"""Drag-and-drop rule for the library tree.

Dropping onto a node with the same parent as the dragged node reorders
siblings. Otherwise dropping onto a folder moves the dragged item there (a file
moves its problem, a folder moves itself). Dropping onto the root area moves to
root. Anything else is ignored.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..schemas.tree import FILE, FOLDER, TreeNode
from ..tree.algorithms import find_node, locate

REORDER = "reorder"
MOVE_NODE = "move_node"
MOVE_PROBLEM = "move_problem"
IGNORE = "ignore"


@dataclass(frozen=True)
class DropAction:
    kind: str
    dragged_id: str
    target_id: Optional[str] = None
    problem_id: Optional[str] = None


def resolve_drop(
    forest: Sequence[TreeNode], dragged_id: str, target_id: Optional[str]
) -> DropAction:
    """Decide what dropping *dragged_id* onto *target_id* (None = root area) means."""
    ignore = DropAction(IGNORE, dragged_id, target_id)
    origin = locate(forest, dragged_id)
    if origin is None or dragged_id == target_id:
        return ignore
    dragged = find_node(forest, dragged_id)

    if target_id is None:
        destination = None
    else:
        position = locate(forest, target_id)
        if position is None:
            return ignore
        if position[0] == origin[0]:
            return DropAction(REORDER, dragged_id, target_id)
        target = find_node(forest, target_id)
        if target.type != FOLDER:
            return ignore
        destination = target_id

    if dragged.type == FILE:
        return DropAction(MOVE_PROBLEM, dragged_id, destination, problem_id=dragged.problem_id)
    return DropAction(MOVE_NODE, dragged_id, destination)


def perform_drop(store, dragged_id: str, target_id: Optional[str]):
    """Resolve against the store's current tree and dispatch. Returns the task or None."""
    action = resolve_drop(store.snapshot.tree, dragged_id, target_id)
    if action.kind == REORDER:
        return store.reorder_within_parent(action.dragged_id, action.target_id)
    if action.kind == MOVE_PROBLEM:
        return store.move_problem_to_folder(action.problem_id, action.target_id)
    if action.kind == MOVE_NODE:
        return store.move_node_to_folder(action.dragged_id, action.target_id)
    return None
