"""Library tree algorithms and derived views."""

from .algorithms import (
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
    locate,
    move_node,
    prune_by_problem_ids,
    remove_nodes,
    reorder_siblings,
    siblings_of,
)
from .selection import SelectionState, VisibleProblemsView, compute_visible_problems

__all__ = [
    "TRASH_FOLDER_TITLE",
    "build_tree",
    "can_move",
    "collect_descendant_ids",
    "collect_descendant_problem_ids",
    "detach_node",
    "find_node",
    "find_node_by_problem_id",
    "find_parent_id",
    "find_trash_folder",
    "flatten",
    "insert_node",
    "is_descendant",
    "locate",
    "move_node",
    "prune_by_problem_ids",
    "remove_nodes",
    "reorder_siblings",
    "siblings_of",
    "SelectionState",
    "VisibleProblemsView",
    "compute_visible_problems",
]
