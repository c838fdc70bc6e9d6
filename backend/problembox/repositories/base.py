"""Base repository with shared, user-scoped get-by-ID patterns.

Every library table carries a ``user_id`` column and every lookup is scoped to
the caller, so one user can never read or touch another user's rows.
Subclasses specify model_class and not_found_error.
"""

from typing import Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import ProblemBoxException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for user-owned SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Problem)
        not_found_error: Exception class to raise from get_by_id
    """

    model_class: Type[ModelT]
    not_found_error: Type[ProblemBoxException]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self, user_id: str) -> Query:
        return self.db.query(self.model_class).filter(self.model_class.user_id == user_id)

    def get_by_id(self, user_id: str, entity_id: str) -> ModelT:
        """Get the user's entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(user_id, entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, user_id: str, entity_id: str) -> Optional[ModelT]:
        """Get the user's entity by primary key, or None if not found."""
        return self._base_query(user_id).filter(self.model_class.id == entity_id).first()

    def get_many(self, user_id: str, entity_ids: Iterable[str]) -> List[ModelT]:
        """The subset of *entity_ids* the user owns, in the order requested."""
        ids = list(dict.fromkeys(entity_ids))
        if not ids:
            return []
        found = {
            entity.id: entity
            for entity in self._base_query(user_id).filter(self.model_class.id.in_(ids)).all()
        }
        return [found[entity_id] for entity_id in ids if entity_id in found]
