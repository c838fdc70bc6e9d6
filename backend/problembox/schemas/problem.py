"""Problem schemas."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from .tree import CamelModel

Difficulty = Literal["easy", "medium", "hard"]
DifficultyFilter = Literal["all", "easy", "medium", "hard"]


class Problem(CamelModel):
    """A problem as returned by the API and held by the tree store."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    subject: str = ""
    difficulty: Difficulty = "medium"
    time_ago: str = ""
    created_at: Optional[datetime] = None
    analysis_result: Optional[Dict[str, Any]] = None
    tags: List[str] = Field(default_factory=list)
    description: str = ""


class ProblemCreate(CamelModel):
    """Import a problem into the library (creates the problem and its file node)."""

    title: str
    subject: str = ""
    difficulty: Difficulty = "medium"
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    parent_folder_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Problem title cannot be empty")
        return v

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, v: Any) -> str:
        # Anything unrecognised is treated as medium, matching the importer's classifier.
        value = str(v or "").strip().lower()
        return value if value in ("easy", "medium", "hard") else "medium"
