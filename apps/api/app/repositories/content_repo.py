import uuid
from collections import defaultdict

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, joinedload

from app.models.content import Content
from app.models.user_interaction import CONTENT_INTERACTION_KINDS, UserInteraction


class ContentRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_id(self, content_id: uuid.UUID) -> Content | None:
        return self.db.scalar(
            select(Content).options(joinedload(Content.creator)).where(Content.id == content_id)
        )

    def get_batch(self, content_ids: list[uuid.UUID]) -> list[Content]:
        if not content_ids:
            return []
        stmt = select(Content).options(joinedload(Content.creator)).where(Content.id.in_(content_ids))
        return list(self.db.scalars(stmt))

    def iter_all(self, *, batch_size: int = 500):
        stmt = select(Content).options(joinedload(Content.creator)).order_by(Content.created_at, Content.id)
        offset = 0
        while True:
            batch = list(self.db.scalars(stmt.offset(offset).limit(batch_size)))
            if not batch:
                return
            yield from batch
            offset += len(batch)

    def create(
        self,
        *,
        creator_id: uuid.UUID,
        title: str,
        description: str,
        body: str,
        categories: list[str],
        tags: list[str],
    ) -> Content:
        content = Content(
            creator_id=creator_id,
            title=title,
            description=description,
            body=body,
            categories_json=categories,
            tags_json=tags,
        )
        self.db.add(content)
        self.db.flush()
        return content

    def delete(self, content: Content) -> None:
        self.db.execute(delete(UserInteraction).where(UserInteraction.content_id == content.id))
        self.db.delete(content)
        self.db.flush()

    def count_interactions(self, content_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict[str, int]]:
        counts: dict[uuid.UUID, dict[str, int]] = defaultdict(dict)
        if not content_ids:
            return counts
        rows = self.db.execute(
            select(UserInteraction.content_id, UserInteraction.kind, func.count(UserInteraction.id))
            .where(
                UserInteraction.content_id.in_(content_ids),
                UserInteraction.kind.in_([kind.value for kind in CONTENT_INTERACTION_KINDS]),
            )
            .group_by(UserInteraction.content_id, UserInteraction.kind)
        ).all()
        for content_id, kind, total in rows:
            counts[content_id][kind] = int(total or 0)
        return counts
