"""Tree node schemas shared by the API and the client-side tree store.

``TreeNode`` is immutable: every tree algorithm returns new nodes, so a forest
snapshot can be compared, cached, and swapped in a single assignment.
"""

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

NodeType = Literal["folder", "file"]

FOLDER: NodeType = "folder"
FILE: NodeType = "file"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TreeNode(CamelModel):
    """A folder or file in a user's library forest."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: NodeType
    parent_id: Optional[str] = None
    problem_id: Optional[str] = None  # files only
    sort_order: int = 0
    children: Tuple["TreeNode", ...] = ()  # folders only

    @model_validator(mode="after")
    def check_variant(self) -> "TreeNode":
        if self.type == FILE:
            if not self.problem_id:
                raise ValueError("File nodes must reference a problem")
            if self.children:
                raise ValueError("File nodes cannot have children")
        return self

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER


class TreeRow(CamelModel):
    """Flat representation of a node, as stored (one row per node)."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: NodeType
    parent_id: Optional[str] = None
    problem_id: Optional[str] = None
    sort_order: int = 0


Forest = Tuple[TreeNode, ...]
