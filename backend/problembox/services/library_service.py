"""Bootstrap snapshot and profile updates."""

import logging

from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError
from ..repositories.problem_repository import FavoriteRepository, ProblemRepository
from ..repositories.profile_repository import ProfileRepository
from ..schemas.library import BootstrapResponse, ProfileOut, ProfileUpdate
from ..schemas.problem import Problem
from .tree_service import LibraryTreeService

logger = logging.getLogger(__name__)


class LibraryService:
    """Whole-library reads for one user."""

    def __init__(self, db: Session):
        self.db = db
        self.tree = LibraryTreeService(db)
        self.problem_repo = ProblemRepository(db)
        self.favorite_repo = FavoriteRepository(db)
        self.profile_repo = ProfileRepository(db)

    def bootstrap(self, user_id: str) -> BootstrapResponse:
        """The complete authoritative snapshot: profile, problems, tree, favorites.

        Guarantees the trash folder exists before the tree is read.
        """
        self.tree.ensure_trash_folder(user_id)
        profile = self.profile_repo.get(user_id)
        return BootstrapResponse(
            profile=ProfileOut.model_validate(profile) if profile is not None else None,
            problems=[Problem.model_validate(p) for p in self.problem_repo.list_for_user(user_id)],
            tree=list(self.tree.get_tree(user_id)),
            favorites=self.favorite_repo.list_problem_ids(user_id),
        )

    def update_profile(self, user_id: str, data: ProfileUpdate) -> ProfileOut:
        profile = self.profile_repo.get(user_id)
        if profile is None:
            raise AuthenticationError("User not found")
        for field_name, value in data.model_dump(exclude_none=True).items():
            setattr(profile, field_name, value.strip() if isinstance(value, str) else value)
        self.db.commit()
        self.db.refresh(profile)
        return ProfileOut.model_validate(profile)
