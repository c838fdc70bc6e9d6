"""Service for library tree operations: folders, trash, moves, reorder, tree building."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import InvalidMoveError, NodeNotFoundError, ProblemNotFoundError, ValidationError
from ..models.tree_node import LibraryNode
from ..repositories.problem_repository import FavoriteRepository, ProblemRepository
from ..repositories.tree_repository import TreeNodeRepository
from ..schemas.tree import Forest, TreeNode
from ..tree.algorithms import TRASH_FOLDER_TITLE, build_tree, collect_descendant_ids, find_node

logger = logging.getLogger(__name__)


class LibraryTreeService:
    """Business logic for a user's library tree.

    Public methods:
        ensure_trash_folder -- get or lazily create the root trash folder
        get_tree            -- nested forest for the user
        create_folder       -- create a folder at root or under a folder
        soft_delete         -- move nodes under the trash folder
        restore             -- move a node back to root
        hard_delete         -- delete a subtree, its problems and favorites
        move_problem        -- move a problem's file node(s) to a folder
        move_node           -- move a node to a folder (cycle-checked)
        reorder             -- assign sibling order from an id list
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = TreeNodeRepository(db)
        self.problem_repo = ProblemRepository(db)
        self.favorite_repo = FavoriteRepository(db)

    def ensure_trash_folder(self, user_id: str) -> LibraryNode:
        """Return the user's trash folder, creating it on first access."""
        trash = self.repo.find_root_folder(user_id, TRASH_FOLDER_TITLE)
        if trash is not None:
            return trash
        try:
            trash = self.repo.create(user_id, TRASH_FOLDER_TITLE, "folder")
            self.db.commit()
        except IntegrityError:
            # A concurrent request created it first.
            self.db.rollback()
            return self.repo.find_root_folder(user_id, TRASH_FOLDER_TITLE)
        logger.info("Created trash folder", extra={"user_id": user_id, "node_id": trash.id})
        return trash

    def get_tree(self, user_id: str) -> Forest:
        """Build the nested forest from the user's rows (sorted by sort_order, created_at)."""
        return build_tree(self.repo.list_for_user(user_id))

    def create_folder(self, user_id: str, title: str, parent_id: Optional[str] = None) -> TreeNode:
        """Create a folder. Validates that the parent is one of the user's folders."""
        title = (title or "").strip()
        if not title:
            raise ValidationError("Folder title cannot be empty", field="title")
        if parent_id and self.repo.get_folder(user_id, parent_id) is None:
            raise ValidationError(f"Parent folder not found: {parent_id}", field="parent_id")
        if not parent_id and title == TRASH_FOLDER_TITLE:
            raise ValidationError(
                f"'{TRASH_FOLDER_TITLE}' is reserved for the trash folder at root", field="title"
            )

        row = self.repo.create(user_id, title, "folder", parent_id=parent_id or None)
        self.db.commit()
        return TreeNode.model_validate(row)

    def soft_delete(self, user_id: str, node_ids: List[str]) -> List[str]:
        """Relocate nodes under the trash folder. Returns the ids actually moved.

        The trash folder itself is never moved.
        """
        trash = self.ensure_trash_folder(user_id)
        candidates = [node_id for node_id in dict.fromkeys(node_ids) if node_id != trash.id]
        affected = self.repo.reparent(user_id, candidates, trash.id)
        self.db.commit()
        logger.info(
            "Soft-deleted nodes",
            extra={"user_id": user_id, "count": len(affected), "trash_id": trash.id},
        )
        return affected

    def restore(self, user_id: str, node_id: str) -> None:
        """Move a node back to forest root."""
        node = self.repo.get_by_id(user_id, node_id)
        if node.parent_id is not None and _has_trash_title(node):
            raise InvalidMoveError(node_id, None, "a root folder with this title is reserved for the trash")
        self.repo.reparent(user_id, [node_id], None)
        self.db.commit()

    def hard_delete(self, user_id: str, node_id: str) -> Tuple[List[str], List[str]]:
        """Permanently delete a node and its subtree.

        Every problem filed in the subtree is deleted together with all of its
        file nodes and favorites. Returns ``(deleted_node_ids, deleted_problem_ids)``.
        """
        self.repo.get_by_id(user_id, node_id)
        forest = self.get_tree(user_id)
        subtree = find_node(forest, node_id)

        node_ids = collect_descendant_ids(subtree)
        problem_ids = [
            node.problem_id for node in self.repo.get_many(user_id, node_ids) if node.problem_id
        ]
        problem_ids = list(dict.fromkeys(problem_ids))

        # Other file nodes pointing at the same problems go too.
        extra_nodes = self.repo.get_by_problem_ids(user_id, problem_ids)
        deleted_ids = list(dict.fromkeys(node_ids + [node.id for node in extra_nodes]))

        self.favorite_repo.delete_for_problems(user_id, problem_ids)
        self.repo.delete_many(user_id, deleted_ids)
        self.problem_repo.delete_many(user_id, problem_ids)
        self.db.commit()

        logger.info(
            "Hard-deleted subtree",
            extra={
                "user_id": user_id,
                "node_id": node_id,
                "nodes": len(deleted_ids),
                "problems": len(problem_ids),
            },
        )
        return deleted_ids, problem_ids

    def move_problem(self, user_id: str, problem_id: str, target_folder_id: Optional[str]) -> List[str]:
        """Move every file node referencing *problem_id* to *target_folder_id* (root if None)."""
        if self.problem_repo.get_by_id_optional(user_id, problem_id) is None:
            raise ProblemNotFoundError(problem_id)
        self._require_target_folder(user_id, target_folder_id)

        node_ids = [node.id for node in self.repo.get_by_problem_ids(user_id, [problem_id])]
        moved = self.repo.reparent(user_id, node_ids, target_folder_id or None)
        self.db.commit()
        return moved

    def move_node(self, user_id: str, node_id: str, target_folder_id: Optional[str]) -> None:
        """Move a node to *target_folder_id* (root if None).

        Rejects self-moves, moves into the node's own subtree, and moving the trash folder.
        """
        node = self.repo.get_by_id(user_id, node_id)
        if target_folder_id and target_folder_id == node_id:
            raise InvalidMoveError(node_id, target_folder_id, "cannot move a node into itself")
        if node.parent_id is None and _has_trash_title(node):
            raise InvalidMoveError(node_id, target_folder_id, "the trash folder cannot be moved")
        if not target_folder_id and _has_trash_title(node):
            raise InvalidMoveError(node_id, None, "a root folder with this title is reserved for the trash")
        self._require_target_folder(user_id, target_folder_id)
        if target_folder_id and self._is_descendant(user_id, node_id, target_folder_id):
            raise InvalidMoveError(node_id, target_folder_id, "cannot move a folder into its own descendant")

        self.repo.reparent(user_id, [node_id], target_folder_id or None)
        self.db.commit()

    def reorder(self, user_id: str, ordered_ids: List[str]) -> None:
        """Give the listed nodes increasing sort keys in the listed order."""
        owned = {node.id for node in self.repo.get_many(user_id, ordered_ids)}
        unknown = [node_id for node_id in ordered_ids if node_id not in owned]
        if unknown:
            raise ValidationError(f"Unknown nodes in reorder: {', '.join(unknown)}", field="ordered_ids")
        self.repo.set_sort_orders(user_id, ordered_ids)
        self.db.commit()

    def _require_target_folder(self, user_id: str, folder_id: Optional[str]) -> None:
        if folder_id and self.repo.get_folder(user_id, folder_id) is None:
            raise ValidationError(f"Target folder not found: {folder_id}", field="target_folder_id")

    def _is_descendant(self, user_id: str, ancestor_id: str, candidate_id: str) -> bool:
        """Check if candidate_id sits anywhere below ancestor_id."""
        for child in self.repo.get_children(user_id, ancestor_id):
            if child.id == candidate_id or self._is_descendant(user_id, child.id, candidate_id):
                return True
        return False


def _has_trash_title(node: LibraryNode) -> bool:
    return node.type == "folder" and node.title == TRASH_FOLDER_TITLE
