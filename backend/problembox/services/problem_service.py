"""Service for problem lifecycle: import into the tree, delete with cascade, favorites."""

import logging
from typing import List, Tuple

from sqlalchemy.orm import Session

from ..exceptions import ProblemNotFoundError, ValidationError
from ..repositories.problem_repository import FavoriteRepository, ProblemRepository
from ..repositories.tree_repository import TreeNodeRepository
from ..schemas.problem import Problem, ProblemCreate
from ..schemas.tree import TreeNode

logger = logging.getLogger(__name__)


class ProblemService:
    """Problems and the file nodes / favorites that reference them.

    Public methods:
        create_problem  -- create a problem and its file node
        delete_problems -- delete problems, their file nodes and favorites
        toggle_favorite -- flip a favorite, return the user's favorite list
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProblemRepository(db)
        self.tree_repo = TreeNodeRepository(db)
        self.favorite_repo = FavoriteRepository(db)

    def create_problem(self, user_id: str, data: ProblemCreate) -> Tuple[Problem, TreeNode]:
        """Create a problem and file it under ``data.parent_folder_id`` (root if None)."""
        parent_id = data.parent_folder_id or None
        if parent_id and self.tree_repo.get_folder(user_id, parent_id) is None:
            raise ValidationError(f"Parent folder not found: {parent_id}", field="parent_folder_id")

        problem = self.repo.create(user_id, data)
        node = self.tree_repo.create(
            user_id, problem.title, "file", parent_id=parent_id, problem_id=problem.id
        )
        self.db.commit()
        logger.info(
            "Problem imported",
            extra={"user_id": user_id, "problem_id": problem.id, "node_id": node.id},
        )
        return Problem.model_validate(problem), TreeNode.model_validate(node)

    def delete_problems(self, user_id: str, problem_ids: List[str]) -> List[str]:
        """Delete problems with every file node and favorite referencing them.

        Unknown ids are ignored for batches; a single unknown id raises
        ProblemNotFoundError. Returns the ids deleted.
        """
        owned = [p.id for p in self.repo.get_many(user_id, dict.fromkeys(problem_ids))]
        if len(problem_ids) == 1 and not owned:
            raise ProblemNotFoundError(problem_ids[0])

        self.favorite_repo.delete_for_problems(user_id, owned)
        self.tree_repo.delete_by_problem_ids(user_id, owned)
        self.repo.delete_many(user_id, owned)
        self.db.commit()
        logger.info("Problems deleted", extra={"user_id": user_id, "count": len(owned)})
        return owned

    def toggle_favorite(self, user_id: str, problem_id: str) -> List[str]:
        self.repo.get_by_id(user_id, problem_id)
        if self.favorite_repo.exists(user_id, problem_id):
            self.favorite_repo.delete_for_problems(user_id, [problem_id])
        else:
            self.favorite_repo.add(user_id, problem_id)
        self.db.commit()
        return self.favorite_repo.list_problem_ids(user_id)
