"""Data access repositories."""

from .base import BaseRepository
from .tree_repository import TreeNodeRepository
from .problem_repository import ProblemRepository, FavoriteRepository
from .profile_repository import ProfileRepository

__all__ = [
    "BaseRepository",
    "TreeNodeRepository",
    "ProblemRepository",
    "FavoriteRepository",
    "ProfileRepository",
]
