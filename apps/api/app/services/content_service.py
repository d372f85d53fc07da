from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import InvalidOperationError, NotFoundError, ServiceUnavailableError
from app.core.feed_query import page_offset
from app.core.tag_utils import MAX_TAGS_DEFAULT, normalize_tag, normalize_tag_list
from app.infra.search_client import SearchIndex, to_content_ids
from app.models.content import Content
from app.models.user_interaction import InteractionKind
from app.repositories.content_repo import ContentRepository
from app.repositories.user_repo import UserRepository
from app.schemas.content import (
    ContentListResponse,
    ContentResponse,
    CreateContentRequest,
    IndexStatusResponse,
    ReindexResponse,
    UpdateContentRequest,
)

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["title^2", "description^1.5", "body", "tags^1.5", "categories^1.5"]
RECENT_FIRST_SORT = [{"created_at": {"order": "desc"}}, {"id": {"order": "asc"}}]
RELEVANCE_SORT = [{"_score": {"order": "desc"}}, {"id": {"order": "asc"}}]


def to_content_response(
    content: Content,
    *,
    stats: dict[str, int] | None = None,
    personalization_score: float | None = None,
) -> ContentResponse:
    stats = stats or {}
    creator = content.creator
    return ContentResponse(
        id=content.id,
        title=content.title,
        description=content.description or "",
        body=content.body or "",
        created_at=content.created_at,
        tags=list(content.tags_json or []),
        categories=list(content.categories_json or []),
        creator_id=content.creator_id,
        creator_username=creator.username if creator else "Unknown",
        share_count=stats.get(InteractionKind.SHARE.value, 0),
        like_count=stats.get(InteractionKind.LIKE.value, 0),
        comment_count=stats.get(InteractionKind.COMMENT.value, 0),
        personalization_score=personalization_score,
    )


class ContentService:
    def __init__(self, db: Session, *, search_index: SearchIndex) -> None:
        self.db = db
        self.search_index = search_index
        self.content_repo = ContentRepository(db)
        self.user_repo = UserRepository(db)

    def get_content(self, *, content_id: UUID) -> ContentResponse:
        content = self._require_content(content_id)
        return self._build_response(content)

    def create_content(self, *, payload: CreateContentRequest) -> ContentResponse:
        if not self.user_repo.get_by_id(payload.creator_id):
            raise NotFoundError(f"User with ID {payload.creator_id} not found")

        content = self.content_repo.create(
            creator_id=payload.creator_id,
            title=payload.title.strip(),
            description=payload.description,
            body=payload.body,
            categories=self._normalize_labels(payload.categories, label="Category"),
            tags=self._normalize_labels(payload.tags, label="Tag"),
        )
        self.db.commit()
        self.db.refresh(content)
        self._sync_document(content)
        return self._build_response(content)

    def update_content(self, *, content_id: UUID, payload: UpdateContentRequest) -> ContentResponse:
        content = self._require_content(content_id)
        if payload.title is not None:
            content.title = payload.title.strip()
        if payload.description is not None:
            content.description = payload.description
        if payload.body is not None:
            content.body = payload.body
        if payload.categories is not None:
            content.categories_json = self._normalize_labels(payload.categories, label="Category")
        if payload.tags is not None:
            content.tags_json = self._normalize_labels(payload.tags, label="Tag")
        self.db.add(content)
        self.db.commit()
        self.db.refresh(content)
        self._sync_document(content)
        return self._build_response(content)

    def delete_content(self, *, content_id: UUID) -> None:
        content = self._require_content(content_id)
        self.content_repo.delete(content)
        self.db.commit()
        try:
            self.search_index.delete_document(content_id)
        except ServiceUnavailableError:
            logger.warning("content deleted but index removal failed", extra={"content_id": str(content_id)})

    def search_content(self, *, query: str, page: int, page_size: int) -> ContentListResponse:
        text = query.strip()
        if not text:
            return ContentListResponse(items=[])
        es_query = {
            "multi_match": {
                "query": text,
                "fields": SEARCH_FIELDS,
                "fuzziness": "AUTO",
            }
        }
        return self._search(es_query, page=page, page_size=page_size, sort=RELEVANCE_SORT)

    def list_by_category(self, *, category: str, page: int, page_size: int) -> ContentListResponse:
        value = normalize_tag(category)
        if not value:
            return ContentListResponse(items=[])
        return self._search({"term": {"categories": value}}, page=page, page_size=page_size)

    def list_by_tag(self, *, tag: str, page: int, page_size: int) -> ContentListResponse:
        value = normalize_tag(tag)
        if not value:
            return ContentListResponse(items=[])
        return self._search({"term": {"tags": value}}, page=page, page_size=page_size)

    def list_by_creator(self, *, creator_id: UUID, page: int, page_size: int) -> ContentListResponse:
        return self._search({"term": {"creator_id": str(creator_id)}}, page=page, page_size=page_size)

    def ensure_index(self) -> IndexStatusResponse:
        return IndexStatusResponse(
            index=self.search_index.index_name,
            exists=self.search_index.ensure_index_exists(),
        )

    def reindex_all(self) -> ReindexResponse:
        self.search_index.ensure_index_exists()
        indexed = self.search_index.reindex_all(self.content_repo.iter_all())
        return ReindexResponse(index=self.search_index.index_name, indexed=indexed)

    def _search(
        self,
        query: dict,
        *,
        page: int,
        page_size: int,
        sort: list[dict] | None = None,
    ) -> ContentListResponse:
        offset = page_offset(page, page_size)
        ranked_ids = self.search_index.search_ids(
            query,
            offset=offset,
            size=page_size,
            sort=sort or RECENT_FIRST_SORT,
        )
        content_ids = to_content_ids(ranked_ids)
        content_map = {content.id: content for content in self.content_repo.get_batch(content_ids)}
        ordered = [content_map[content_id] for content_id in content_ids if content_id in content_map]
        stats_map = self.content_repo.count_interactions([content.id for content in ordered])
        return ContentListResponse(
            items=[to_content_response(content, stats=stats_map.get(content.id, {})) for content in ordered]
        )

    def _build_response(self, content: Content) -> ContentResponse:
        stats = self.content_repo.count_interactions([content.id]).get(content.id, {})
        return to_content_response(content, stats=stats)

    def _normalize_labels(self, values: list[str], *, label: str) -> list[str]:
        rejected = [value for value in values if not normalize_tag(value)]
        if rejected:
            raise InvalidOperationError(f"{label} format is invalid: {rejected[0]!r}")
        normalized = normalize_tag_list(values, max_count=len(values))
        if len(normalized) > MAX_TAGS_DEFAULT:
            raise InvalidOperationError(f"At most {MAX_TAGS_DEFAULT} {label.lower()} values are allowed")
        return normalized

    def _sync_document(self, content: Content) -> None:
        try:
            self.search_index.index_document(content)
        except ServiceUnavailableError:
            logger.warning("content saved but index sync failed", extra={"content_id": str(content.id)})

    def _require_content(self, content_id: UUID) -> Content:
        content = self.content_repo.get_by_id(content_id)
        if not content:
            raise NotFoundError(f"Content with ID {content_id} not found")
        return content
