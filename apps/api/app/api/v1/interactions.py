from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import get_interaction_service
from app.schemas.interaction import (
    CommentRequest,
    ContentInteractionRequest,
    FollowRequest,
    GenericMessageResponse,
    InteractionResponse,
    UserProfileResponse,
    UserTagRequest,
)
from app.services.interaction_service import InteractionService

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.post("/share", response_model=InteractionResponse)
def share_content(
    payload: ContentInteractionRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.share_content(user_id=payload.user_id, content_id=payload.content_id)


@router.delete("/share", response_model=GenericMessageResponse)
def remove_share(
    payload: ContentInteractionRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.remove_share(user_id=payload.user_id, content_id=payload.content_id)


@router.post("/like", response_model=InteractionResponse)
def like_content(
    payload: ContentInteractionRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.like_content(user_id=payload.user_id, content_id=payload.content_id)


@router.delete("/like", response_model=GenericMessageResponse)
def remove_like(
    payload: ContentInteractionRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.remove_like(user_id=payload.user_id, content_id=payload.content_id)


@router.post("/comment", response_model=InteractionResponse)
def comment_on_content(
    payload: CommentRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.comment_on_content(
        user_id=payload.user_id,
        content_id=payload.content_id,
        comment_text=payload.comment_text,
    )


@router.delete("/comment/{comment_id}", response_model=GenericMessageResponse)
def remove_comment(
    comment_id: UUID,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.remove_comment(comment_id=comment_id)


@router.post("/follow", response_model=InteractionResponse)
def follow_user(
    payload: FollowRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.follow_user(user_id=payload.user_id, followed_user_id=payload.followed_user_id)


@router.delete("/follow", response_model=GenericMessageResponse)
def unfollow_user(
    payload: FollowRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.unfollow_user(user_id=payload.user_id, followed_user_id=payload.followed_user_id)


@router.post("/preference", response_model=UserProfileResponse)
def add_preference(
    payload: UserTagRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.add_preference(user_id=payload.user_id, preference=payload.value)


@router.delete("/preference", response_model=UserProfileResponse)
def remove_preference(
    payload: UserTagRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.remove_preference(user_id=payload.user_id, preference=payload.value)


@router.post("/interest", response_model=UserProfileResponse)
def add_interest(
    payload: UserTagRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.add_interest(user_id=payload.user_id, interest=payload.value)


@router.delete("/interest", response_model=UserProfileResponse)
def remove_interest(
    payload: UserTagRequest,
    service: InteractionService = Depends(get_interaction_service),
):
    return service.remove_interest(user_id=payload.user_id, interest=payload.value)
