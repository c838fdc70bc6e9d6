"""API routes for problems and favorites."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.library import (
    FavoritesResponse,
    FavoriteToggle,
    OkResponse,
    ProblemCreated,
    ProblemIdsRequest,
)
from ..schemas.problem import ProblemCreate
from ..services.problem_service import ProblemService

router = APIRouter(prefix="/api", tags=["problems"])


@router.post("/problems", response_model=ProblemCreated, status_code=201)
def create_problem(
    data: ProblemCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Import a problem and file it in the tree."""
    problem, node = ProblemService(db).create_problem(auth.user_id, data)
    return ProblemCreated(problem=problem, node=node)


@router.delete("/problems/{problem_id}", response_model=OkResponse)
def delete_problem(
    problem_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Delete a problem with its file nodes and favorites."""
    ProblemService(db).delete_problems(auth.user_id, [problem_id])
    return OkResponse()


@router.post("/problems/batch-delete", response_model=OkResponse)
def delete_problems(
    data: ProblemIdsRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Delete several problems with their file nodes and favorites."""
    ProblemService(db).delete_problems(auth.user_id, data.problem_ids)
    return OkResponse()


@router.post("/favorites/toggle", response_model=FavoritesResponse)
def toggle_favorite(
    data: FavoriteToggle,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Add or remove a favorite; returns the full favorite list."""
    favorites = ProblemService(db).toggle_favorite(auth.user_id, data.problem_id)
    return FavoritesResponse(favorites=favorites)
