"""Authentication endpoints.

    POST /api/auth/register         create account, returns token + profile
    POST /api/auth/login            authenticate, returns token + profile
    POST /api/auth/change-password  verify current password, set a new one
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..core.config import settings
from ..core.token_factory import create_token
from ..database import get_db
from ..schemas.library import OkResponse, ProfileOut
from ..schemas.tree import CamelModel
from ..services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str = Field(..., min_length=auth_service.MIN_PASSWORD_LENGTH)

    model_config = {
        "json_schema_extra": {
            "examples": [{"name": "Alice", "email": "alice@example.com", "password": "secret-pass"}]
        }
    }


class LoginRequest(CamelModel):
    email: str
    password: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str


class AuthResponse(CamelModel):
    token: str
    profile: ProfileOut


def _issue(profile) -> AuthResponse:
    token = create_token(
        subject=profile.id,
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.token_expire_hours,
    )
    return AuthResponse(token=token, profile=ProfileOut.model_validate(profile))


@router.post("/register", response_model=AuthResponse, status_code=201, summary="Register a new user")
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    profile = auth_service.register_user(db, body.email, body.password, body.name)
    return _issue(profile)


@router.post("/login", response_model=AuthResponse, summary="Authenticate and receive a bearer token")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    profile = auth_service.authenticate(db, body.email, body.password)
    return _issue(profile)


@router.post("/change-password", response_model=OkResponse, summary="Change the current user's password")
def change_password(
    body: ChangePasswordRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    auth_service.change_password(db, auth.user_id, body.current_password, body.new_password)
    return OkResponse()
