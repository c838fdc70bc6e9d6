"""Database models."""

from .user import Profile
from .problem import Problem, Favorite
from .tree_node import LibraryNode

__all__ = ["Profile", "Problem", "Favorite", "LibraryNode"]
