import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import InvalidOperationError, NotFoundError
from app.core.tag_utils import normalize_tag
from app.models.user import User
from app.models.user_interaction import InteractionKind, UserInteraction
from app.repositories.content_repo import ContentRepository
from app.repositories.interaction_repo import InteractionRepository
from app.repositories.user_repo import UserRepository
from app.schemas.interaction import GenericMessageResponse, InteractionResponse, UserProfileResponse

logger = logging.getLogger(__name__)


class InteractionService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.user_repo = UserRepository(db)
        self.content_repo = ContentRepository(db)
        self.interaction_repo = InteractionRepository(db)

    def share_content(self, *, user_id: UUID, content_id: UUID) -> InteractionResponse:
        return self._set_content_interaction(user_id=user_id, content_id=content_id, kind=InteractionKind.SHARE)

    def like_content(self, *, user_id: UUID, content_id: UUID) -> InteractionResponse:
        return self._set_content_interaction(user_id=user_id, content_id=content_id, kind=InteractionKind.LIKE)

    def comment_on_content(self, *, user_id: UUID, content_id: UUID, comment_text: str) -> InteractionResponse:
        self._require_user(user_id)
        self._require_content(content_id)
        text = comment_text.strip()
        if not text:
            raise InvalidOperationError("Comment text cannot be empty")

        comment = self.interaction_repo.create(
            kind=InteractionKind.COMMENT,
            user_id=user_id,
            content_id=content_id,
            comment_text=text,
        )
        self.db.commit()
        return self._to_response(comment)

    def follow_user(self, *, user_id: UUID, followed_user_id: UUID) -> InteractionResponse:
        self._require_user(user_id)
        self._require_user(followed_user_id)
        if user_id == followed_user_id:
            raise InvalidOperationError("User cannot follow themselves")

        existing = self.interaction_repo.get_follow(user_id=user_id, followed_user_id=followed_user_id)
        if existing:
            return self._to_response(existing)

        try:
            follow = self.interaction_repo.create(
                kind=InteractionKind.FOLLOW,
                user_id=user_id,
                followed_user_id=followed_user_id,
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            follow = self.interaction_repo.get_follow(user_id=user_id, followed_user_id=followed_user_id)
            if not follow:
                raise
        return self._to_response(follow)

    def remove_share(self, *, user_id: UUID, content_id: UUID) -> GenericMessageResponse:
        self.interaction_repo.delete_content_interaction(
            user_id=user_id,
            content_id=content_id,
            kind=InteractionKind.SHARE,
        )
        self.db.commit()
        return GenericMessageResponse(message="Share removed")

    def remove_like(self, *, user_id: UUID, content_id: UUID) -> GenericMessageResponse:
        self.interaction_repo.delete_content_interaction(
            user_id=user_id,
            content_id=content_id,
            kind=InteractionKind.LIKE,
        )
        self.db.commit()
        return GenericMessageResponse(message="Like removed")

    def remove_comment(self, *, comment_id: UUID) -> GenericMessageResponse:
        self.interaction_repo.delete_comment(comment_id)
        self.db.commit()
        return GenericMessageResponse(message="Comment removed")

    def unfollow_user(self, *, user_id: UUID, followed_user_id: UUID) -> GenericMessageResponse:
        self.interaction_repo.delete_follow(user_id=user_id, followed_user_id=followed_user_id)
        self.db.commit()
        return GenericMessageResponse(message="Unfollowed")

    def add_preference(self, *, user_id: UUID, preference: str) -> UserProfileResponse:
        user = self._require_user(user_id)
        value = self._normalize_value(preference, label="Preference")
        if value not in user.preferences_json:
            user.preferences_json = [*user.preferences_json, value]
            self.db.add(user)
            self.db.commit()
        return self._to_profile(user)

    def remove_preference(self, *, user_id: UUID, preference: str) -> UserProfileResponse:
        user = self._require_user(user_id)
        value = self._normalize_value(preference, label="Preference")
        if value in user.preferences_json:
            user.preferences_json = [item for item in user.preferences_json if item != value]
            self.db.add(user)
            self.db.commit()
        return self._to_profile(user)

    def add_interest(self, *, user_id: UUID, interest: str) -> UserProfileResponse:
        user = self._require_user(user_id)
        value = self._normalize_value(interest, label="Interest")
        if value not in user.interests_json:
            user.interests_json = [*user.interests_json, value]
            self.db.add(user)
            self.db.commit()
        return self._to_profile(user)

    def remove_interest(self, *, user_id: UUID, interest: str) -> UserProfileResponse:
        user = self._require_user(user_id)
        value = self._normalize_value(interest, label="Interest")
        if value in user.interests_json:
            user.interests_json = [item for item in user.interests_json if item != value]
            self.db.add(user)
            self.db.commit()
        return self._to_profile(user)

    def _set_content_interaction(
        self,
        *,
        user_id: UUID,
        content_id: UUID,
        kind: InteractionKind,
    ) -> InteractionResponse:
        self._require_user(user_id)
        self._require_content(content_id)

        existing = self.interaction_repo.get_content_interaction(user_id=user_id, content_id=content_id, kind=kind)
        if existing:
            return self._to_response(existing)

        try:
            interaction = self.interaction_repo.create(kind=kind, user_id=user_id, content_id=content_id)
            self.db.commit()
        except IntegrityError:
            # A concurrent request created the same record first.
            self.db.rollback()
            interaction = self.interaction_repo.get_content_interaction(
                user_id=user_id,
                content_id=content_id,
                kind=kind,
            )
            if not interaction:
                raise
            logger.info(
                "duplicate interaction resolved to existing record",
                extra={"user_id": str(user_id), "content_id": str(content_id), "kind": kind.value},
            )
        return self._to_response(interaction)

    def _normalize_value(self, raw: str, *, label: str) -> str:
        value = normalize_tag(raw)
        if not value:
            raise InvalidOperationError(f"{label} format is invalid")
        return value

    def _require_user(self, user_id: UUID) -> User:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    def _require_content(self, content_id: UUID) -> None:
        if not self.content_repo.get_by_id(content_id):
            raise NotFoundError(f"Content with ID {content_id} not found")

    def _to_response(self, interaction: UserInteraction) -> InteractionResponse:
        return InteractionResponse(
            id=interaction.id,
            kind=interaction.kind,
            user_id=interaction.user_id,
            content_id=interaction.content_id,
            followed_user_id=interaction.followed_user_id,
            comment_text=interaction.comment_text,
            created_at=interaction.created_at,
        )

    def _to_profile(self, user: User) -> UserProfileResponse:
        return UserProfileResponse(
            id=user.id,
            username=user.username,
            preferences=list(user.preferences_json or []),
            interests=list(user.interests_json or []),
        )
