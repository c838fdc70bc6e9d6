"""Bootstrap and profile routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.library import BootstrapResponse, ProfileResponse, ProfileUpdate
from ..services.library_service import LibraryService

router = APIRouter(prefix="/api", tags=["library"])


@router.get("/bootstrap", response_model=BootstrapResponse)
def bootstrap(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Full snapshot of the caller's library. Also the client's reconciliation call."""
    return LibraryService(db).bootstrap(auth.user_id)


@router.post("/profile", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Update display name, avatar, or plan."""
    return ProfileResponse(profile=LibraryService(db).update_profile(auth.user_id, data))
