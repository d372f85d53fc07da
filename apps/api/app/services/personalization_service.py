from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import PersonalizationWeights, get_personalization_weights
from app.core.errors import NotFoundError, ServiceUnavailableError
from app.core.feed_query import compose_feed_query
from app.core.scoring import (
    RECENT_INTERACTIONS_PER_KIND,
    FollowActivity,
    InfluentialFollow,
    RecentInteraction,
    ScoreSignals,
    SignalCounts,
    calculate_score,
    compute_factor_values,
    kind_weight,
    rank_influential_follows,
    rank_recent_interactions,
)
from app.infra.search_client import SearchIndex, to_content_ids
from app.models.content import Content
from app.models.user import User
from app.models.user_interaction import InteractionKind
from app.repositories.content_repo import ContentRepository
from app.repositories.interaction_repo import InteractionRepository
from app.repositories.user_repo import UserRepository
from app.schemas.content import ContentResponse
from app.schemas.personalization import (
    ContentInteractionInfo,
    PersonalizationFactors,
    PersonalizationScoreResponse,
    PersonalizedFeedResponse,
    UserFollowInfo,
)
from app.services.content_service import to_content_response

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"
_RECENT_KINDS = (InteractionKind.SHARE, InteractionKind.COMMENT, InteractionKind.LIKE)


class PersonalizationService:
    def __init__(
        self,
        db: Session,
        *,
        search_index: SearchIndex,
        weights: PersonalizationWeights | None = None,
    ) -> None:
        self.db = db
        self.search_index = search_index
        self.weights = weights or get_personalization_weights()
        self.user_repo = UserRepository(db)
        self.content_repo = ContentRepository(db)
        self.interaction_repo = InteractionRepository(db)

    def get_factors(self, *, user_id: UUID) -> PersonalizationFactors:
        user = self._require_user(user_id)
        followed_user_ids = self.interaction_repo.list_followed_user_ids(user.id)
        return self._build_factors(user=user, followed_user_ids=followed_user_ids)

    def get_score(self, *, user_id: UUID, content_id: UUID) -> PersonalizationScoreResponse:
        return PersonalizationScoreResponse(
            user_id=user_id,
            content_id=content_id,
            score=self.calculate_score(user_id=user_id, content_id=content_id),
        )

    def calculate_score(self, *, user_id: UUID, content_id: UUID) -> float:
        user = self._require_user(user_id)
        content = self.content_repo.get_by_id(content_id)
        if not content:
            raise NotFoundError(f"Content with ID {content_id} not found")

        kinds = self.interaction_repo.content_kinds_for_user(user.id, [content.id]).get(content.id, set())
        follows_creator = (
            self.interaction_repo.get_follow(user_id=user.id, followed_user_id=content.creator_id) is not None
        )
        return calculate_score(
            self._score_signals(user=user, content=content, kinds=kinds, follows_creator=follows_creator),
            self.weights,
        )

    def get_personalized_feed(
        self,
        *,
        user_id: UUID,
        page: int = 1,
        page_size: int = 20,
        now: datetime | None = None,
    ) -> PersonalizedFeedResponse:
        user = self._require_user(user_id)
        followed_user_ids = self.interaction_repo.list_followed_user_ids(user.id)
        factors = self._build_factors(user=user, followed_user_ids=followed_user_ids)

        feed_query = compose_feed_query(
            preferences=factors.active_preferences,
            interests=factors.active_interests,
            followed_user_ids=followed_user_ids,
            factors=factors,
            page=page,
            page_size=page_size,
            now=now,
        )
        try:
            ranked_ids = self.search_index.search_ids(
                feed_query.query,
                offset=feed_query.offset,
                size=feed_query.size,
                sort=feed_query.sort,
            )
        except ServiceUnavailableError:
            logger.warning(
                "personalized feed search failed, returning no results",
                extra={"user_id": str(user.id), "page": page, "page_size": page_size},
            )
            raise

        return PersonalizedFeedResponse(
            items=self._assemble_feed(user=user, ranked_ids=ranked_ids, followed_user_ids=set(followed_user_ids))
        )

    def _build_factors(self, *, user: User, followed_user_ids: list[UUID]) -> PersonalizationFactors:
        preferences = list(user.preferences_json or [])
        interests = list(user.interests_json or [])
        counts_by_kind = self.interaction_repo.count_by_kind(user.id)
        counts = SignalCounts(
            shares=counts_by_kind.get(InteractionKind.SHARE.value, 0),
            likes=counts_by_kind.get(InteractionKind.LIKE.value, 0),
            comments=counts_by_kind.get(InteractionKind.COMMENT.value, 0),
            follows=counts_by_kind.get(InteractionKind.FOLLOW.value, 0),
            preferences=len(preferences),
            interests=len(interests),
        )
        values = compute_factor_values(counts, self.weights)

        return PersonalizationFactors(
            user_id=user.id,
            share_factor=values.share,
            comment_factor=values.comment,
            like_factor=values.like,
            follow_factor=values.follow,
            preference_factor=values.preference,
            interest_factor=values.interest,
            active_preferences=preferences,
            active_interests=interests,
            most_influential_follows=[
                UserFollowInfo(
                    user_id=follow.user_id,
                    username=follow.username,
                    influence_score=follow.influence_score,
                )
                for follow in self._influential_follows(followed_user_ids)
            ],
            recent_interactions=[
                ContentInteractionInfo(
                    content_id=item.content_id,
                    content_title=item.content_title,
                    interaction_type=item.interaction_type,
                    influence_score=item.influence_score,
                )
                for item in self._recent_interactions(user.id)
            ],
        )

    def _influential_follows(self, followed_user_ids: list[UUID]) -> list[InfluentialFollow]:
        if not followed_user_ids:
            return []
        activity = self.interaction_repo.count_by_kind_for_users(followed_user_ids)
        followed_users = self.user_repo.get_many(followed_user_ids)
        activities = []
        for followed_id in followed_user_ids:
            counts = activity.get(followed_id, {})
            followed = followed_users.get(followed_id)
            activities.append(
                FollowActivity(
                    user_id=followed_id,
                    username=followed.username if followed else UNKNOWN_LABEL,
                    shares=counts.get(InteractionKind.SHARE.value, 0),
                    comments=counts.get(InteractionKind.COMMENT.value, 0),
                    likes=counts.get(InteractionKind.LIKE.value, 0),
                )
            )
        return rank_influential_follows(activities, self.weights)

    def _recent_interactions(self, user_id: UUID) -> list[RecentInteraction]:
        records = []
        for kind in _RECENT_KINDS:
            records.extend(self.interaction_repo.list_recent(user_id, kind, limit=RECENT_INTERACTIONS_PER_KIND))
        if not records:
            return []

        content_ids = list({record.content_id for record in records if record.content_id})
        content_map = {content.id: content for content in self.content_repo.get_batch(content_ids)}
        candidates = []
        for record in records:
            content = content_map.get(record.content_id)
            candidates.append(
                RecentInteraction(
                    content_id=record.content_id,
                    content_title=content.title if content else UNKNOWN_LABEL,
                    interaction_type=record.kind,
                    influence_score=kind_weight(record.kind, self.weights),
                    content_created_at=content.created_at if content else None,
                )
            )
        return rank_recent_interactions(candidates)

    def _assemble_feed(
        self,
        *,
        user: User,
        ranked_ids: list[str],
        followed_user_ids: set[UUID],
    ) -> list[ContentResponse]:
        content_ids = to_content_ids(ranked_ids)
        if not content_ids:
            return []

        content_map = {content.id: content for content in self.content_repo.get_batch(content_ids)}
        # Index order is authoritative; ids missing from the store are dropped.
        ordered = [content_map[content_id] for content_id in content_ids if content_id in content_map]
        if len(ordered) < len(content_ids):
            logger.info(
                "search returned content missing from the store",
                extra={"user_id": str(user.id), "missing": len(content_ids) - len(ordered)},
            )

        ordered_ids = [content.id for content in ordered]
        kinds_map = self.interaction_repo.content_kinds_for_user(user.id, ordered_ids)
        stats_map = self.content_repo.count_interactions(ordered_ids)
        items = []
        for content in ordered:
            signals = self._score_signals(
                user=user,
                content=content,
                kinds=kinds_map.get(content.id, set()),
                follows_creator=content.creator_id in followed_user_ids,
            )
            items.append(
                to_content_response(
                    content,
                    stats=stats_map.get(content.id, {}),
                    personalization_score=calculate_score(signals, self.weights),
                )
            )
        return items

    def _score_signals(
        self,
        *,
        user: User,
        content: Content,
        kinds: set[str],
        follows_creator: bool,
    ) -> ScoreSignals:
        return ScoreSignals(
            shared=InteractionKind.SHARE.value in kinds,
            liked=InteractionKind.LIKE.value in kinds,
            commented=InteractionKind.COMMENT.value in kinds,
            follows_creator=follows_creator,
            content_categories=list(content.categories_json or []),
            content_tags=list(content.tags_json or []),
            preferences=set(user.preferences_json or []),
            interests=set(user.interests_json or []),
        )

    def _require_user(self, user_id: UUID) -> User:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user
