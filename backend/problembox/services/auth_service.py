"""Account creation, password hashing and login.

Passwords are hashed with passlib (pbkdf2_sha256) and never stored or logged
in plaintext. Endpoints are thin wrappers around these functions.
"""

import logging
import uuid

from passlib.hash import pbkdf2_sha256
from sqlalchemy.orm import Session

from ..exceptions import ValidationError, AuthenticationError
from ..models.user import Profile
from ..repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def register_user(db: Session, email: str, password: str, name: str) -> Profile:
    """Create a new account and its profile.

    Raises ValidationError if the email is taken or an input is invalid.
    """
    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValidationError("Valid email address required", field="email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    if not name.strip():
        raise ValidationError("Name required", field="name")

    repo = ProfileRepository(db)
    if repo.get_by_email(email) is not None:
        raise ValidationError("Email already registered", field="email")

    profile = repo.create(
        user_id=str(uuid.uuid4()),
        name=name.strip(),
        email=email,
        password_hash=pbkdf2_sha256.hash(password),
    )
    db.commit()
    db.refresh(profile)
    logger.info("User registered", extra={"user_id": profile.id})
    return profile


def authenticate(db: Session, email: str, password: str) -> Profile:
    """Validate credentials and return the profile.

    Raises AuthenticationError on unknown email or wrong password.
    """
    profile = ProfileRepository(db).get_by_email(email.strip().lower())

    if profile is None or profile.password_hash is None:
        raise AuthenticationError("Invalid email or password")

    if not pbkdf2_sha256.verify(password, profile.password_hash):
        raise AuthenticationError("Invalid email or password")

    return profile


def change_password(db: Session, user_id: str, current_password: str, new_password: str) -> None:
    """Replace the user's password after verifying the current one."""
    profile = ProfileRepository(db).get(user_id)
    if profile is None or profile.password_hash is None:
        raise AuthenticationError("Account has no password")
    if not pbkdf2_sha256.verify(current_password, profile.password_hash):
        raise AuthenticationError("Current password is incorrect")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="new_password"
        )
    profile.password_hash = pbkdf2_sha256.hash(new_password)
    db.commit()
