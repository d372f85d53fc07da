"""Search query composition for the personalized feed.

The composed request is a ``function_score`` query: a disjunctive base filter
over categories, tags and creators (or ``match_all`` when the user has no
signals at all, which leaves the feed ranked by recency alone), plus boost
functions whose scores are summed and multiplied into the base relevance.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.core.errors import InvalidOperationError
from app.core.scoring import FOLLOW_INFLUENCE_NORMALIZER
from app.schemas.personalization import PersonalizationFactors

RECENCY_FIELD = "created_at"
RECENCY_SCALE = "7d"
RECENCY_DECAY = 0.5
MAX_PAGE_SIZE = 100

# Ties on score are broken by document id so that pages never overlap.
FEED_SORT: list[dict[str, Any]] = [
    {"_score": {"order": "desc"}},
    {"id": {"order": "asc"}},
]


@dataclass(frozen=True)
class FeedQuery:
    query: dict[str, Any]
    offset: int
    size: int
    sort: list[dict[str, Any]] = field(default_factory=lambda: list(FEED_SORT))


def page_offset(page: int, page_size: int) -> int:
    if page < 1:
        raise InvalidOperationError("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidOperationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
    return (page - 1) * page_size


def build_base_query(
    preferences: Sequence[str],
    interests: Sequence[str],
    followed_user_ids: Collection[UUID],
) -> dict[str, Any]:
    should: list[dict[str, Any]] = []
    if preferences:
        should.append({"terms": {"categories": list(preferences)}})
    if interests:
        should.append({"terms": {"tags": list(interests)}})
    if followed_user_ids:
        should.append({"terms": {"creator_id": [str(user_id) for user_id in followed_user_ids]}})

    if not should:
        return {"match_all": {}}
    return {"bool": {"should": should, "minimum_should_match": 1}}


def build_scoring_functions(factors: PersonalizationFactors, *, now: datetime) -> list[dict[str, Any]]:
    functions: list[dict[str, Any]] = []

    follow_boost = factors.follow_factor / FOLLOW_INFLUENCE_NORMALIZER
    if follow_boost > 0:
        for follow in factors.most_influential_follows:
            functions.append(
                {
                    "filter": {"term": {"creator_id": str(follow.user_id)}},
                    "weight": follow_boost,
                }
            )

    if factors.active_preferences:
        preference_boost = factors.preference_factor / max(1, len(factors.active_preferences))
        if preference_boost > 0:
            functions.append(
                {
                    "filter": {"terms": {"categories": list(factors.active_preferences)}},
                    "weight": preference_boost,
                }
            )

    if factors.active_interests:
        interest_boost = factors.interest_factor / max(1, len(factors.active_interests))
        if interest_boost > 0:
            functions.append(
                {
                    "filter": {"terms": {"tags": list(factors.active_interests)}},
                    "weight": interest_boost,
                }
            )

    functions.append(
        {
            "gauss": {
                RECENCY_FIELD: {
                    "origin": format_origin(now),
                    "scale": RECENCY_SCALE,
                    "decay": RECENCY_DECAY,
                }
            }
        }
    )
    return functions


def compose_feed_query(
    *,
    preferences: Sequence[str],
    interests: Sequence[str],
    followed_user_ids: Collection[UUID],
    factors: PersonalizationFactors,
    page: int,
    page_size: int,
    now: datetime | None = None,
) -> FeedQuery:
    offset = page_offset(page, page_size)
    query = {
        "function_score": {
            "query": build_base_query(preferences, interests, followed_user_ids),
            "functions": build_scoring_functions(factors, now=now or datetime.now(timezone.utc)),
            "score_mode": "sum",
            "boost_mode": "multiply",
        }
    }
    return FeedQuery(query=query, offset=offset, size=page_size)


def format_origin(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
