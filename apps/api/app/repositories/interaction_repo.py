import uuid
from collections import defaultdict

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.models.user_interaction import InteractionKind, UserInteraction


class InteractionRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def count_by_kind(self, user_id: uuid.UUID) -> dict[str, int]:
        rows = self.db.execute(
            select(UserInteraction.kind, func.count(UserInteraction.id))
            .where(UserInteraction.user_id == user_id)
            .group_by(UserInteraction.kind)
        ).all()
        return {kind: int(total or 0) for kind, total in rows}

    def count_by_kind_for_users(self, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict[str, int]]:
        counts: dict[uuid.UUID, dict[str, int]] = defaultdict(dict)
        if not user_ids:
            return counts
        rows = self.db.execute(
            select(UserInteraction.user_id, UserInteraction.kind, func.count(UserInteraction.id))
            .where(UserInteraction.user_id.in_(user_ids))
            .group_by(UserInteraction.user_id, UserInteraction.kind)
        ).all()
        for user_id, kind, total in rows:
            counts[user_id][kind] = int(total or 0)
        return counts

    def list_recent(self, user_id: uuid.UUID, kind: InteractionKind, *, limit: int) -> list[UserInteraction]:
        stmt = (
            select(UserInteraction)
            .where(UserInteraction.user_id == user_id, UserInteraction.kind == kind.value)
            .order_by(UserInteraction.created_at.desc(), UserInteraction.id)
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def list_followed_user_ids(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        stmt = (
            select(UserInteraction.followed_user_id)
            .where(
                UserInteraction.user_id == user_id,
                UserInteraction.kind == InteractionKind.FOLLOW.value,
            )
            .order_by(UserInteraction.created_at, UserInteraction.id)
        )
        return [followed_id for followed_id in self.db.scalars(stmt) if followed_id is not None]

    def content_kinds_for_user(
        self,
        user_id: uuid.UUID,
        content_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, set[str]]:
        kinds: dict[uuid.UUID, set[str]] = defaultdict(set)
        if not content_ids:
            return kinds
        rows = self.db.execute(
            select(UserInteraction.content_id, UserInteraction.kind)
            .where(
                UserInteraction.user_id == user_id,
                UserInteraction.content_id.in_(content_ids),
            )
            .distinct()
        ).all()
        for content_id, kind in rows:
            kinds[content_id].add(kind)
        return kinds

    def get_content_interaction(
        self,
        *,
        user_id: uuid.UUID,
        content_id: uuid.UUID,
        kind: InteractionKind,
    ) -> UserInteraction | None:
        return self.db.scalar(
            select(UserInteraction).where(
                UserInteraction.user_id == user_id,
                UserInteraction.content_id == content_id,
                UserInteraction.kind == kind.value,
            )
        )

    def get_follow(self, *, user_id: uuid.UUID, followed_user_id: uuid.UUID) -> UserInteraction | None:
        return self.db.scalar(
            select(UserInteraction).where(
                UserInteraction.user_id == user_id,
                UserInteraction.followed_user_id == followed_user_id,
                UserInteraction.kind == InteractionKind.FOLLOW.value,
            )
        )

    def create(
        self,
        *,
        kind: InteractionKind,
        user_id: uuid.UUID,
        content_id: uuid.UUID | None = None,
        followed_user_id: uuid.UUID | None = None,
        comment_text: str | None = None,
    ) -> UserInteraction:
        interaction = UserInteraction(
            kind=kind.value,
            user_id=user_id,
            content_id=content_id,
            followed_user_id=followed_user_id,
            comment_text=comment_text,
        )
        self.db.add(interaction)
        self.db.flush()
        return interaction

    def delete_content_interaction(
        self,
        *,
        user_id: uuid.UUID,
        content_id: uuid.UUID,
        kind: InteractionKind,
    ) -> None:
        self.db.execute(
            delete(UserInteraction).where(
                UserInteraction.user_id == user_id,
                UserInteraction.content_id == content_id,
                UserInteraction.kind == kind.value,
            )
        )

    def delete_follow(self, *, user_id: uuid.UUID, followed_user_id: uuid.UUID) -> None:
        self.db.execute(
            delete(UserInteraction).where(
                UserInteraction.user_id == user_id,
                UserInteraction.followed_user_id == followed_user_id,
                UserInteraction.kind == InteractionKind.FOLLOW.value,
            )
        )

    def delete_comment(self, comment_id: uuid.UUID) -> None:
        self.db.execute(
            delete(UserInteraction).where(
                UserInteraction.id == comment_id,
                UserInteraction.kind == InteractionKind.COMMENT.value,
            )
        )
