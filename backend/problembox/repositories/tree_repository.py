"""Repository for tree_nodes rows."""

import time
import uuid
from typing import Iterable, List, Optional

from sqlalchemy import func

from ..exceptions import NodeNotFoundError
from ..models.tree_node import LibraryNode
from .base import BaseRepository


class TreeNodeRepository(BaseRepository[LibraryNode]):
    """CRUD for a user's folder and file rows."""

    model_class = LibraryNode
    not_found_error = NodeNotFoundError

    def list_for_user(self, user_id: str) -> List[LibraryNode]:
        """All rows in display order (sort_order, then creation time)."""
        return (
            self._base_query(user_id)
            .order_by(LibraryNode.sort_order, LibraryNode.created_at, LibraryNode.id)
            .all()
        )

    def get_folder(self, user_id: str, folder_id: str) -> Optional[LibraryNode]:
        return (
            self._base_query(user_id)
            .filter(LibraryNode.id == folder_id, LibraryNode.type == "folder")
            .first()
        )

    def find_root_folder(self, user_id: str, title: str) -> Optional[LibraryNode]:
        return (
            self._base_query(user_id)
            .filter(
                LibraryNode.type == "folder",
                LibraryNode.title == title,
                LibraryNode.parent_id.is_(None),
            )
            .order_by(LibraryNode.created_at, LibraryNode.id)
            .first()
        )

    def get_children(self, user_id: str, parent_id: str) -> List[LibraryNode]:
        return (
            self._base_query(user_id)
            .filter(LibraryNode.parent_id == parent_id)
            .order_by(LibraryNode.sort_order, LibraryNode.created_at)
            .all()
        )

    def get_by_problem_ids(self, user_id: str, problem_ids: Iterable[str]) -> List[LibraryNode]:
        ids = list(problem_ids)
        if not ids:
            return []
        return self._base_query(user_id).filter(LibraryNode.problem_id.in_(ids)).all()

    def next_sort_order(self, user_id: str) -> int:
        """A sort key greater than every existing one, so new or moved rows sort last."""
        current = (
            self.db.query(func.max(LibraryNode.sort_order))
            .filter(LibraryNode.user_id == user_id)
            .scalar()
        )
        return max(int(current or 0) + 1, int(time.time() * 1000))

    def create(
        self,
        user_id: str,
        title: str,
        node_type: str,
        parent_id: Optional[str] = None,
        problem_id: Optional[str] = None,
    ) -> LibraryNode:
        node = LibraryNode(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            type=node_type,
            parent_id=parent_id,
            problem_id=problem_id,
            sort_order=self.next_sort_order(user_id),
        )
        self.db.add(node)
        self.db.flush()
        self.db.refresh(node)
        return node

    def reparent(self, user_id: str, node_ids: Iterable[str], parent_id: Optional[str]) -> List[str]:
        """Move the user's nodes under *parent_id*, appended after existing siblings.

        Returns the ids that were actually moved (unknown ids are skipped).
        """
        nodes = self.get_many(user_id, node_ids)
        base = self.next_sort_order(user_id)
        for offset, node in enumerate(nodes):
            node.parent_id = parent_id
            node.sort_order = base + offset
        self.db.flush()
        return [node.id for node in nodes]

    def set_sort_orders(self, user_id: str, ordered_ids: List[str]) -> None:
        nodes = {node.id: node for node in self.get_many(user_id, ordered_ids)}
        base = self.next_sort_order(user_id)
        for index, node_id in enumerate(ordered_ids):
            nodes[node_id].sort_order = base + index
        self.db.flush()

    def delete_many(self, user_id: str, node_ids: Iterable[str]) -> int:
        ids = list(node_ids)
        if not ids:
            return 0
        count = (
            self._base_query(user_id)
            .filter(LibraryNode.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count

    def delete_by_problem_ids(self, user_id: str, problem_ids: Iterable[str]) -> int:
        ids = list(problem_ids)
        if not ids:
            return 0
        count = (
            self._base_query(user_id)
            .filter(LibraryNode.problem_id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count
