"""Repository for problems and favorites."""

import uuid
from typing import Iterable, List

from ..exceptions import ProblemNotFoundError
from ..models.problem import Favorite, Problem
from ..schemas.problem import ProblemCreate
from .base import BaseRepository


class ProblemRepository(BaseRepository[Problem]):
    """CRUD for a user's problems."""

    model_class = Problem
    not_found_error = ProblemNotFoundError

    def list_for_user(self, user_id: str) -> List[Problem]:
        """Newest first."""
        return (
            self._base_query(user_id)
            .order_by(Problem.created_at.desc(), Problem.id)
            .all()
        )

    def create(self, user_id: str, data: ProblemCreate) -> Problem:
        problem = Problem(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=data.title,
            subject=data.subject,
            difficulty=data.difficulty,
            description=data.description,
            tags=list(data.tags),
        )
        self.db.add(problem)
        self.db.flush()
        self.db.refresh(problem)
        return problem

    def delete_many(self, user_id: str, problem_ids: Iterable[str]) -> int:
        ids = list(problem_ids)
        if not ids:
            return 0
        count = (
            self._base_query(user_id)
            .filter(Problem.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count


class FavoriteRepository:
    """A user's favorite problem ids."""

    def __init__(self, db):
        self.db = db

    def list_problem_ids(self, user_id: str) -> List[str]:
        rows = (
            self.db.query(Favorite.problem_id)
            .filter(Favorite.user_id == user_id)
            .order_by(Favorite.created_at, Favorite.problem_id)
            .all()
        )
        return [row.problem_id for row in rows]

    def exists(self, user_id: str, problem_id: str) -> bool:
        return (
            self.db.query(Favorite)
            .filter(Favorite.user_id == user_id, Favorite.problem_id == problem_id)
            .first()
            is not None
        )

    def add(self, user_id: str, problem_id: str) -> None:
        self.db.add(Favorite(user_id=user_id, problem_id=problem_id))
        self.db.flush()

    def delete_for_problems(self, user_id: str, problem_ids: Iterable[str]) -> int:
        ids = list(problem_ids)
        if not ids:
            return 0
        count = (
            self.db.query(Favorite)
            .filter(Favorite.user_id == user_id, Favorite.problem_id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count
