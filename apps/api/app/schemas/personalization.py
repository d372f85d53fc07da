from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.content import ContentResponse


class UserFollowInfo(BaseModel):
    user_id: UUID
    username: str
    influence_score: float


class ContentInteractionInfo(BaseModel):
    content_id: UUID
    content_title: str
    interaction_type: str
    influence_score: float


class PersonalizationFactors(BaseModel):
    user_id: UUID
    share_factor: float = 0.0
    comment_factor: float = 0.0
    like_factor: float = 0.0
    follow_factor: float = 0.0
    preference_factor: float = 0.0
    interest_factor: float = 0.0
    active_preferences: list[str] = Field(default_factory=list)
    active_interests: list[str] = Field(default_factory=list)
    most_influential_follows: list[UserFollowInfo] = Field(default_factory=list)
    recent_interactions: list[ContentInteractionInfo] = Field(default_factory=list)


class PersonalizationScoreResponse(BaseModel):
    user_id: UUID
    content_id: UUID
    score: float


class PersonalizedFeedResponse(BaseModel):
    items: list[ContentResponse]
