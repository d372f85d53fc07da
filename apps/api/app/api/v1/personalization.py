from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_personalization_service
from app.schemas.personalization import (
    PersonalizationFactors,
    PersonalizationScoreResponse,
    PersonalizedFeedResponse,
)
from app.services.personalization_service import PersonalizationService

router = APIRouter(prefix="/personalization", tags=["personalization"])


@router.get("/feed/{user_id}", response_model=PersonalizedFeedResponse)
def get_personalized_feed(
    user_id: UUID,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: PersonalizationService = Depends(get_personalization_service),
):
    return service.get_personalized_feed(user_id=user_id, page=page, page_size=page_size)


@router.get("/score/{user_id}/{content_id}", response_model=PersonalizationScoreResponse)
def get_personalization_score(
    user_id: UUID,
    content_id: UUID,
    service: PersonalizationService = Depends(get_personalization_service),
):
    return service.get_score(user_id=user_id, content_id=content_id)


@router.get("/factors/{user_id}", response_model=PersonalizationFactors)
def get_personalization_factors(
    user_id: UUID,
    service: PersonalizationService = Depends(get_personalization_service),
):
    return service.get_factors(user_id=user_id)
