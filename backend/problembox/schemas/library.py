"""Request/response schemas for the library routes and the bootstrap snapshot."""

from typing import Dict, List, Optional, Tuple

from pydantic import ConfigDict, Field, field_validator

from .problem import Problem
from .tree import CamelModel, Forest, TreeNode


# --- Profile ---

class ProfileOut(CamelModel):
    """Profile fields visible to the owner."""
    id: str
    name: str = ""
    email: Optional[str] = None
    avatar: Optional[str] = None
    plan: str = "free"


class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    plan: Optional[str] = None

    @field_validator("plan")
    @classmethod
    def validate_plan(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ("free", "pro"):
            raise ValueError("Plan must be 'free' or 'pro'")
        return v


class ProfileResponse(CamelModel):
    profile: ProfileOut


# --- Bootstrap ---

class BootstrapResponse(CamelModel):
    """Full authoritative snapshot for one user."""
    profile: Optional[ProfileOut] = None
    problems: List[Problem] = Field(default_factory=list)
    tree: List[TreeNode] = Field(default_factory=list)
    favorites: List[str] = Field(default_factory=list)


class LibrarySnapshot(CamelModel):
    """Immutable client-side view of a user's library.

    Replaced wholesale by the tree store on every mutation and reconciliation.
    """

    model_config = ConfigDict(frozen=True)

    profile: Optional[ProfileOut] = None
    problems: Dict[str, Problem] = Field(default_factory=dict)
    tree: Forest = ()
    favorites: Tuple[str, ...] = ()

    @classmethod
    def from_bootstrap(cls, data: BootstrapResponse) -> "LibrarySnapshot":
        return cls(
            profile=data.profile,
            problems={p.id: p for p in data.problems},
            tree=tuple(data.tree),
            favorites=tuple(data.favorites),
        )


# --- Folder / node requests ---

class FolderCreate(CamelModel):
    title: str
    parent_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Folder title cannot be empty")
        return v


class FolderCreated(CamelModel):
    node: TreeNode


class NodeRequest(CamelModel):
    node_id: str


class NodeIdsRequest(CamelModel):
    node_ids: List[str]

    @field_validator("node_ids")
    @classmethod
    def validate_not_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("nodeIds cannot be empty")
        return v


class MoveProblemRequest(CamelModel):
    problem_id: str
    target_folder_id: Optional[str] = None


class MoveNodeRequest(CamelModel):
    node_id: str
    target_folder_id: Optional[str] = None


class ReorderRequest(CamelModel):
    ordered_ids: List[str]

    @field_validator("ordered_ids")
    @classmethod
    def validate_not_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("orderedIds cannot be empty")
        if len(set(v)) != len(v):
            raise ValueError("orderedIds contains duplicates")
        return v


class ProblemIdsRequest(CamelModel):
    problem_ids: List[str]

    @field_validator("problem_ids")
    @classmethod
    def validate_not_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("problemIds cannot be empty")
        return v


class FavoriteToggle(CamelModel):
    problem_id: str


# --- Responses ---

class OkResponse(CamelModel):
    ok: bool = True


class AffectedResponse(OkResponse):
    affected_ids: List[str] = Field(default_factory=list)


class HardDeleteResponse(OkResponse):
    deleted_ids: List[str] = Field(default_factory=list)
    deleted_problem_ids: List[str] = Field(default_factory=list)


class FavoritesResponse(CamelModel):
    favorites: List[str] = Field(default_factory=list)


class ProblemCreated(CamelModel):
    problem: Problem
    node: TreeNode
