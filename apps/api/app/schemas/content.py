from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ContentResponse(BaseModel):
    id: UUID
    title: str
    description: str
    body: str
    created_at: datetime
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    creator_id: UUID
    creator_username: str
    share_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    personalization_score: float | None = None


class ContentListResponse(BaseModel):
    items: list[ContentResponse]


class CreateContentRequest(BaseModel):
    creator_id: UUID
    title: str = Field(min_length=1, max_length=512)
    description: str = Field(default="", max_length=4000)
    body: str = Field(default="")
    tags: list[str] = Field(default_factory=list, max_length=50)
    categories: list[str] = Field(default_factory=list, max_length=50)


class UpdateContentRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=512)
    description: str | None = Field(default=None, max_length=4000)
    body: str | None = None
    tags: list[str] | None = Field(default=None, max_length=50)
    categories: list[str] | None = Field(default=None, max_length=50)


class IndexStatusResponse(BaseModel):
    index: str
    exists: bool


class ReindexResponse(BaseModel):
    index: str
    indexed: int
