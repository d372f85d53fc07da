"""Elasticsearch access for the content index.

Uses elasticsearch-py 8.x:
- indices.exists / indices.create for index lifecycle
- index / delete for single documents
- helpers.bulk for full reindexing
- search with a function_score query and an explicit sort

Transport and API failures are logged and raised as ServiceUnavailableError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from functools import lru_cache
from typing import Any, Protocol
from uuid import UUID

from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError, helpers

from app.core.config import settings
from app.core.errors import ServiceUnavailableError
from app.models.content import Content

logger = logging.getLogger(__name__)

INDEX_SETTINGS: dict[str, Any] = {
    "number_of_shards": 1,
    "number_of_replicas": 0,
    "analysis": {
        "analyzer": {
            "content_analyzer": {
                "type": "custom",
                "tokenizer": "standard",
                "filter": ["lowercase", "asciifolding", "stop", "snowball"],
            }
        }
    },
}

INDEX_MAPPINGS: dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword"},
        "title": {
            "type": "text",
            "analyzer": "content_analyzer",
            "fields": {"keyword": {"type": "keyword"}},
        },
        "description": {"type": "text", "analyzer": "content_analyzer"},
        "body": {"type": "text", "analyzer": "content_analyzer"},
        "created_at": {"type": "date"},
        "tags": {"type": "keyword"},
        "categories": {"type": "keyword"},
        "creator_id": {"type": "keyword"},
    }
}

_SEARCH_ERRORS = (ApiError, TransportError)


class SearchIndex(Protocol):
    index_name: str

    def ping(self) -> bool: ...

    def ensure_index_exists(self) -> bool: ...

    def index_document(self, content: Content) -> None: ...

    def delete_document(self, content_id: UUID) -> None: ...

    def reindex_all(self, contents: Iterable[Content]) -> int: ...

    def search_ids(
        self,
        query: dict[str, Any],
        *,
        offset: int,
        size: int,
        sort: list[dict[str, Any]] | None = None,
    ) -> list[str]: ...


def content_to_document(content: Content) -> dict[str, Any]:
    return {
        "id": str(content.id),
        "title": content.title,
        "description": content.description or "",
        "body": content.body or "",
        "created_at": content.created_at.isoformat() if content.created_at else None,
        "tags": list(content.tags_json or []),
        "categories": list(content.categories_json or []),
        "creator_id": str(content.creator_id),
    }


def to_content_ids(ranked_ids: Iterable[str]) -> list[UUID]:
    content_ids: list[UUID] = []
    for raw_id in dict.fromkeys(ranked_ids):
        try:
            content_ids.append(UUID(str(raw_id)))
        except ValueError:
            logger.warning("search returned a malformed content id", extra={"content_id": raw_id})
    return content_ids


class SearchClient:
    def __init__(
        self,
        client: Elasticsearch | None = None,
        *,
        index_name: str | None = None,
    ) -> None:
        self.index_name = index_name or settings.elasticsearch_index
        self._client = client or _build_elasticsearch()

    def close(self) -> None:
        self._client.close()

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except _SEARCH_ERRORS:
            logger.warning("search ping failed", extra={"index": self.index_name})
            return False

    def ensure_index_exists(self) -> bool:
        try:
            if self._client.indices.exists(index=self.index_name):
                return True
            self._client.indices.create(
                index=self.index_name,
                settings=INDEX_SETTINGS,
                mappings=INDEX_MAPPINGS,
            )
            logger.info("created search index", extra={"index": self.index_name})
            return bool(self._client.indices.exists(index=self.index_name))
        except _SEARCH_ERRORS as exc:
            logger.exception("failed to ensure search index", extra={"index": self.index_name})
            raise ServiceUnavailableError("search index unavailable") from exc

    def index_document(self, content: Content) -> None:
        try:
            self._client.index(
                index=self.index_name,
                id=str(content.id),
                document=content_to_document(content),
            )
        except _SEARCH_ERRORS as exc:
            logger.exception("failed to index content", extra={"content_id": str(content.id)})
            raise ServiceUnavailableError("search index unavailable") from exc

    def delete_document(self, content_id: UUID) -> None:
        try:
            self._client.delete(index=self.index_name, id=str(content_id))
        except NotFoundError:
            return
        except _SEARCH_ERRORS as exc:
            logger.exception("failed to delete content from index", extra={"content_id": str(content_id)})
            raise ServiceUnavailableError("search index unavailable") from exc

    def reindex_all(self, contents: Iterable[Content]) -> int:
        actions = (
            {
                "_index": self.index_name,
                "_id": str(content.id),
                "_source": content_to_document(content),
            }
            for content in contents
        )
        try:
            indexed, _ = helpers.bulk(self._client, actions, refresh=True)
        except (*_SEARCH_ERRORS, helpers.BulkIndexError) as exc:
            logger.exception("bulk reindex failed", extra={"index": self.index_name})
            raise ServiceUnavailableError("search index unavailable") from exc
        logger.info("reindexed content", extra={"index": self.index_name, "indexed": indexed})
        return int(indexed)

    def search_ids(
        self,
        query: dict[str, Any],
        *,
        offset: int,
        size: int,
        sort: list[dict[str, Any]] | None = None,
    ) -> list[str]:
        try:
            response = self._client.search(
                index=self.index_name,
                query=query,
                from_=offset,
                size=size,
                sort=sort,
                source=False,
            )
        except _SEARCH_ERRORS as exc:
            logger.exception("search query failed", extra={"index": self.index_name})
            raise ServiceUnavailableError("search index unavailable") from exc
        return [hit["_id"] for hit in response["hits"]["hits"]]


def _build_elasticsearch() -> Elasticsearch:
    basic_auth = None
    if settings.elasticsearch_username and settings.elasticsearch_password:
        basic_auth = (settings.elasticsearch_username, settings.elasticsearch_password)
    return Elasticsearch(
        settings.elasticsearch_url,
        basic_auth=basic_auth,
        request_timeout=settings.elasticsearch_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_search_client() -> SearchClient:
    return SearchClient()
