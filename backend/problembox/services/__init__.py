"""Business logic services."""

from .tree_service import LibraryTreeService
from .problem_service import ProblemService
from .library_service import LibraryService

__all__ = ["LibraryTreeService", "ProblemService", "LibraryService"]
