from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_content_service
from app.schemas.content import (
    ContentListResponse,
    ContentResponse,
    CreateContentRequest,
    IndexStatusResponse,
    ReindexResponse,
    UpdateContentRequest,
)
from app.services.content_service import ContentService

router = APIRouter(prefix="/content", tags=["content"])


@router.post("", response_model=ContentResponse, status_code=status.HTTP_201_CREATED)
def create_content(
    payload: CreateContentRequest,
    service: ContentService = Depends(get_content_service),
):
    return service.create_content(payload=payload)


@router.get("/search", response_model=ContentListResponse)
def search_content(
    q: str = Query(min_length=1, max_length=256),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: ContentService = Depends(get_content_service),
):
    return service.search_content(query=q, page=page, page_size=page_size)


@router.get("/category/{category}", response_model=ContentListResponse)
def list_by_category(
    category: str,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: ContentService = Depends(get_content_service),
):
    return service.list_by_category(category=category, page=page, page_size=page_size)


@router.get("/tag/{tag}", response_model=ContentListResponse)
def list_by_tag(
    tag: str,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: ContentService = Depends(get_content_service),
):
    return service.list_by_tag(tag=tag, page=page, page_size=page_size)


@router.get("/creator/{creator_id}", response_model=ContentListResponse)
def list_by_creator(
    creator_id: UUID,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    service: ContentService = Depends(get_content_service),
):
    return service.list_by_creator(creator_id=creator_id, page=page, page_size=page_size)


@router.post("/index/ensure", response_model=IndexStatusResponse)
def ensure_index(service: ContentService = Depends(get_content_service)):
    return service.ensure_index()


@router.post("/index/reindex", response_model=ReindexResponse)
def reindex_content(service: ContentService = Depends(get_content_service)):
    return service.reindex_all()


@router.get("/{content_id}", response_model=ContentResponse)
def get_content(
    content_id: UUID,
    service: ContentService = Depends(get_content_service),
):
    return service.get_content(content_id=content_id)


@router.put("/{content_id}", response_model=ContentResponse)
def update_content(
    content_id: UUID,
    payload: UpdateContentRequest,
    service: ContentService = Depends(get_content_service),
):
    return service.update_content(content_id=content_id, payload=payload)


@router.delete("/{content_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_content(
    content_id: UUID,
    service: ContentService = Depends(get_content_service),
):
    service.delete_content(content_id=content_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
