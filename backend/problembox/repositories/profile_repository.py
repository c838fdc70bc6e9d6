"""Repository for profiles."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.user import Profile


class ProfileRepository:
    """Lookup and creation of profile rows."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.email == email).first()

    def create(
        self,
        user_id: str,
        name: str,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> Profile:
        profile = Profile(id=user_id, name=name, email=email, password_hash=password_hash, plan="free")
        self.db.add(profile)
        self.db.flush()
        self.db.refresh(profile)
        return profile
