import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class InteractionKind(str, enum.Enum):
    SHARE = "share"
    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"


CONTENT_INTERACTION_KINDS = (InteractionKind.SHARE, InteractionKind.LIKE, InteractionKind.COMMENT)

_UNIQUE_CONTENT_KINDS_WHERE = text("kind IN ('share', 'like')")
_FOLLOW_WHERE = text("kind = 'follow'")


class UserInteraction(Base):
    __tablename__ = "user_interactions"
    __table_args__ = (
        CheckConstraint(
            "kind IN ('share', 'like', 'comment', 'follow')",
            name="ck_user_interactions_kind",
        ),
        CheckConstraint(
            "(kind = 'follow' AND followed_user_id IS NOT NULL AND content_id IS NULL) "
            "OR (kind <> 'follow' AND content_id IS NOT NULL AND followed_user_id IS NULL)",
            name="ck_user_interactions_target_oneof",
        ),
        CheckConstraint(
            "followed_user_id IS NULL OR followed_user_id <> user_id",
            name="ck_user_interactions_no_self_follow",
        ),
        Index(
            "uq_user_interactions_content_target",
            "user_id",
            "content_id",
            "kind",
            unique=True,
            postgresql_where=_UNIQUE_CONTENT_KINDS_WHERE,
            sqlite_where=_UNIQUE_CONTENT_KINDS_WHERE,
        ),
        Index(
            "uq_user_interactions_follow_target",
            "user_id",
            "followed_user_id",
            unique=True,
            postgresql_where=_FOLLOW_WHERE,
            sqlite_where=_FOLLOW_WHERE,
        ),
        Index("ix_user_interactions_user_kind", "user_id", "kind"),
        Index("ix_user_interactions_content_id", "content_id"),
        Index("ix_user_interactions_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("content.id", ondelete="CASCADE"),
        nullable=True,
    )
    followed_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
