"""Weighted signal arithmetic for personalization.

Everything here is a pure function over explicit inputs so that scores and
factor snapshots can be computed and tested without a database or a search
index. Store access lives in the repositories and services.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from app.core.config import PersonalizationWeights
from app.models.user_interaction import InteractionKind

BASE_SCORE = 1.0
# Followed users' own activity is scaled down by this constant before it is
# added to the follow weight.
FOLLOW_INFLUENCE_NORMALIZER = 10.0
MAX_INFLUENTIAL_FOLLOWS = 5
RECENT_INTERACTIONS_PER_KIND = 3
MAX_RECENT_INTERACTIONS = 5

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class SignalCounts:
    shares: int = 0
    likes: int = 0
    comments: int = 0
    follows: int = 0
    preferences: int = 0
    interests: int = 0


@dataclass(frozen=True)
class FactorValues:
    share: float
    comment: float
    like: float
    follow: float
    preference: float
    interest: float


@dataclass(frozen=True)
class FollowActivity:
    user_id: UUID
    username: str
    shares: int = 0
    comments: int = 0
    likes: int = 0


@dataclass(frozen=True)
class InfluentialFollow:
    user_id: UUID
    username: str
    influence_score: float


@dataclass(frozen=True)
class RecentInteraction:
    content_id: UUID
    content_title: str
    interaction_type: str
    influence_score: float
    content_created_at: datetime | None = None


@dataclass(frozen=True)
class ScoreSignals:
    shared: bool = False
    liked: bool = False
    commented: bool = False
    follows_creator: bool = False
    content_categories: Sequence[str] = ()
    content_tags: Sequence[str] = ()
    preferences: Collection[str] = frozenset()
    interests: Collection[str] = frozenset()


def kind_weight(kind: InteractionKind | str, weights: PersonalizationWeights) -> float:
    value = InteractionKind(kind)
    if value is InteractionKind.SHARE:
        return weights.share
    if value is InteractionKind.LIKE:
        return weights.like
    if value is InteractionKind.COMMENT:
        return weights.comment
    return weights.follow


def compute_factor_values(counts: SignalCounts, weights: PersonalizationWeights) -> FactorValues:
    return FactorValues(
        share=_weighted(weights.share, counts.shares),
        comment=_weighted(weights.comment, counts.comments),
        like=_weighted(weights.like, counts.likes),
        follow=_weighted(weights.follow, counts.follows),
        preference=_weighted(weights.preference, counts.preferences),
        interest=_weighted(weights.interest, counts.interests),
    )


def influence_score(activity: FollowActivity, weights: PersonalizationWeights) -> float:
    weighted_activity = (
        activity.shares * weights.share
        + activity.comments * weights.comment
        + activity.likes * weights.like
    )
    return weights.follow + weighted_activity / FOLLOW_INFLUENCE_NORMALIZER


def rank_influential_follows(
    activities: Iterable[FollowActivity],
    weights: PersonalizationWeights,
    *,
    limit: int = MAX_INFLUENTIAL_FOLLOWS,
) -> list[InfluentialFollow]:
    scored = [
        InfluentialFollow(
            user_id=activity.user_id,
            username=activity.username,
            influence_score=influence_score(activity, weights),
        )
        for activity in activities
    ]
    # sorted() is stable, so equal scores keep follow order.
    scored.sort(key=lambda follow: follow.influence_score, reverse=True)
    return scored[:limit]


def rank_recent_interactions(
    candidates: Iterable[RecentInteraction],
    *,
    limit: int = MAX_RECENT_INTERACTIONS,
) -> list[RecentInteraction]:
    ordered = sorted(
        candidates,
        key=lambda item: (item.influence_score, _sortable_time(item.content_created_at)),
        reverse=True,
    )
    return ordered[:limit]


def match_ratio(values: Sequence[str], active: Collection[str]) -> float:
    if not values or not active:
        return 0.0
    matches = sum(1 for value in values if value in active)
    return matches / max(1, len(values))


def calculate_score(signals: ScoreSignals, weights: PersonalizationWeights) -> float:
    score = BASE_SCORE
    if signals.shared:
        score += weights.share
    if signals.liked:
        score += weights.like
    if signals.commented:
        score += weights.comment
    if signals.follows_creator:
        score += weights.follow
    score += weights.preference * match_ratio(signals.content_categories, signals.preferences)
    score += weights.interest * match_ratio(signals.content_tags, signals.interests)
    return score


def _weighted(weight: float, count: int) -> float:
    if count <= 0:
        return 0.0
    return weight * count


def _sortable_time(value: datetime | None) -> datetime:
    if value is None:
        return _OLDEST
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
