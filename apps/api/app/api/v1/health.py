from fastapi import APIRouter, Depends

from app.api.deps import get_content_service, get_health_service
from app.schemas.content import IndexStatusResponse, ReindexResponse
from app.schemas.health import ComponentHealth, HealthResponse
from app.services.content_service import ContentService
from app.services.health_service import HealthService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health(service: HealthService = Depends(get_health_service)):
    return service.check()


@router.get("/database", response_model=ComponentHealth)
def database_health(service: HealthService = Depends(get_health_service)):
    return service.check_database()


@router.get("/search", response_model=ComponentHealth)
def search_health(service: HealthService = Depends(get_health_service)):
    return service.check_search()


@router.post("/search/initialize", response_model=IndexStatusResponse)
def initialize_search(service: ContentService = Depends(get_content_service)):
    return service.ensure_index()


@router.post("/search/reindex", response_model=ReindexResponse)
def reindex_search(service: ContentService = Depends(get_content_service)):
    return service.reindex_all()
