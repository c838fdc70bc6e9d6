"""FastAPI dependency resolving a bearer token to a user.

Public interface:
    ``require_auth`` returns AuthContext or raises 401.

When ``settings.auth_enabled`` is False every request acts as
``settings.default_user_id``; the matching profile row is created on first use
so that the user's folders and problems have an owner.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity available to every endpoint. All queries are scoped to ``user_id``."""

    user_id: str
    email: Optional[str] = None


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer token and return the caller's AuthContext."""
    from ..repositories.profile_repository import ProfileRepository

    repo = ProfileRepository(db)

    if not settings.auth_enabled:
        profile = repo.get(settings.default_user_id)
        if profile is None:
            profile = repo.create(settings.default_user_id, name="Local User")
            db.commit()
            logger.info("Created local profile", extra={"user_id": profile.id})
        return AuthContext(user_id=profile.id, email=profile.email)

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    profile = repo.get(payload.sub)
    if profile is None:
        raise AuthenticationError("User not found")

    return AuthContext(user_id=profile.id, email=profile.email)
