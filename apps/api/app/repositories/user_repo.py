import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.user import User


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_id(self, user_pk: uuid.UUID) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_pk))

    def get_many(self, user_pks: list[uuid.UUID]) -> dict[uuid.UUID, User]:
        if not user_pks:
            return {}
        return {user.id: user for user in self.db.scalars(select(User).where(User.id.in_(user_pks)))}

    def has_any(self) -> bool:
        return self.db.scalar(select(User.id).limit(1)) is not None

    def create(
        self,
        *,
        username: str,
        email: str,
        preferences: list[str] | None = None,
        interests: list[str] | None = None,
    ) -> User:
        user = User(
            username=username,
            email=email,
            preferences_json=list(preferences or []),
            interests_json=list(interests or []),
        )
        self.db.add(user)
        self.db.flush()
        return user
