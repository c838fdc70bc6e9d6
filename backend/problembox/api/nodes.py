"""API routes for folder and node operations.

Every endpoint is scoped to the authenticated user. The user id comes from the
auth context, never from the request body.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.library import (
    AffectedResponse,
    FolderCreate,
    FolderCreated,
    HardDeleteResponse,
    MoveNodeRequest,
    MoveProblemRequest,
    NodeIdsRequest,
    NodeRequest,
    OkResponse,
    ReorderRequest,
)
from ..services.tree_service import LibraryTreeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tree"])


@router.post("/folders", response_model=FolderCreated)
def create_folder(
    data: FolderCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Create a folder at root or under ``parentId``."""
    node = LibraryTreeService(db).create_folder(auth.user_id, data.title, data.parent_id)
    return FolderCreated(node=node)


@router.delete("/nodes/{node_id}", response_model=AffectedResponse)
def soft_delete_node(
    node_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move a node under the trash folder."""
    affected = LibraryTreeService(db).soft_delete(auth.user_id, [node_id])
    return AffectedResponse(affected_ids=affected)


@router.post("/nodes/batch-delete", response_model=AffectedResponse)
def soft_delete_nodes(
    data: NodeIdsRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move several nodes under the trash folder."""
    affected = LibraryTreeService(db).soft_delete(auth.user_id, data.node_ids)
    return AffectedResponse(affected_ids=affected)


@router.post("/nodes/restore", response_model=OkResponse)
def restore_node(
    data: NodeRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move a node back to root."""
    LibraryTreeService(db).restore(auth.user_id, data.node_id)
    return OkResponse()


@router.post("/nodes/hard-delete", response_model=HardDeleteResponse)
def hard_delete_node(
    data: NodeRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Permanently delete a node, its subtree, and the problems filed in it."""
    deleted_ids, deleted_problem_ids = LibraryTreeService(db).hard_delete(auth.user_id, data.node_id)
    return HardDeleteResponse(deleted_ids=deleted_ids, deleted_problem_ids=deleted_problem_ids)


@router.post("/nodes/move-problem", response_model=OkResponse)
def move_problem(
    data: MoveProblemRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move a problem's file node to a folder (root when ``targetFolderId`` is null)."""
    LibraryTreeService(db).move_problem(auth.user_id, data.problem_id, data.target_folder_id)
    return OkResponse()


@router.post("/nodes/move-node", response_model=OkResponse)
def move_node(
    data: MoveNodeRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move a node to a folder (root when ``targetFolderId`` is null)."""
    LibraryTreeService(db).move_node(auth.user_id, data.node_id, data.target_folder_id)
    return OkResponse()


@router.post("/nodes/reorder", response_model=OkResponse)
def reorder_nodes(
    data: ReorderRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Persist sibling order for the listed nodes."""
    LibraryTreeService(db).reorder(auth.user_id, data.ordered_ids)
    return OkResponse()
