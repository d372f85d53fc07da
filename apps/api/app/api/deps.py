from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import PersonalizationWeights, get_personalization_weights
from app.db.session import get_db
from app.infra.search_client import SearchIndex, get_search_client
from app.services.content_service import ContentService
from app.services.health_service import HealthService
from app.services.interaction_service import InteractionService
from app.services.personalization_service import PersonalizationService


def get_search_index() -> SearchIndex:
    return get_search_client()


def get_weights() -> PersonalizationWeights:
    return get_personalization_weights()


def get_personalization_service(
    db: Session = Depends(get_db),
    search_index: SearchIndex = Depends(get_search_index),
    weights: PersonalizationWeights = Depends(get_weights),
) -> PersonalizationService:
    return PersonalizationService(db, search_index=search_index, weights=weights)


def get_content_service(
    db: Session = Depends(get_db),
    search_index: SearchIndex = Depends(get_search_index),
) -> ContentService:
    return ContentService(db, search_index=search_index)


def get_interaction_service(db: Session = Depends(get_db)) -> InteractionService:
    return InteractionService(db)


def get_health_service(
    db: Session = Depends(get_db),
    search_index: SearchIndex = Depends(get_search_index),
) -> HealthService:
    return HealthService(db, search_index=search_index)
