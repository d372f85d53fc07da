from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class GenericMessageResponse(BaseModel):
    message: str


class ContentInteractionRequest(BaseModel):
    user_id: UUID
    content_id: UUID


class CommentRequest(BaseModel):
    user_id: UUID
    content_id: UUID
    comment_text: str = Field(min_length=1, max_length=2000)


class FollowRequest(BaseModel):
    user_id: UUID
    followed_user_id: UUID


class UserTagRequest(BaseModel):
    user_id: UUID
    value: str = Field(min_length=1, max_length=64)


class InteractionResponse(BaseModel):
    id: UUID
    kind: Literal["share", "like", "comment", "follow"]
    user_id: UUID
    content_id: UUID | None
    followed_user_id: UUID | None
    comment_text: str | None
    created_at: datetime


class UserProfileResponse(BaseModel):
    id: UUID
    username: str
    preferences: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
