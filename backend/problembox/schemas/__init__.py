"""Pydantic schemas for API validation and client-side state."""

from .tree import TreeNode, TreeRow, Forest, FOLDER, FILE
from .problem import Problem, ProblemCreate, Difficulty, DifficultyFilter
from .library import (
    BootstrapResponse,
    LibrarySnapshot,
    ProfileOut,
    FolderCreate,
    FolderCreated,
)

__all__ = [
    "TreeNode",
    "TreeRow",
    "Forest",
    "FOLDER",
    "FILE",
    "Problem",
    "ProblemCreate",
    "Difficulty",
    "DifficultyFilter",
    "BootstrapResponse",
    "LibrarySnapshot",
    "ProfileOut",
    "FolderCreate",
    "FolderCreated",
]
