import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.errors import ServiceUnavailableError
from app.core.logging_setup import setup_logging
from app.db.session import SessionLocal
from app.infra.search_client import get_search_client
from app.services.bootstrap_service import BootstrapService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    search_client = get_search_client()
    with SessionLocal() as db:
        BootstrapService(db, search_index=search_client).run()
    logger.info("application started", extra={"app_env": settings.app_env})
    yield
    search_client.close()


async def service_unavailable_handler(request: Request, exc: ServiceUnavailableError) -> JSONResponse:
    logger.warning("service unavailable", extra={"path": request.url.path, "detail": exc.detail})
    return JSONResponse({"detail": exc.detail, "items": []}, status_code=exc.status_code)


def create_app() -> FastAPI:
    application = FastAPI(title=settings.app_name, lifespan=lifespan)
    application.add_exception_handler(ServiceUnavailableError, service_unavailable_handler)
    application.include_router(api_router, prefix="/api/v1")
    return application


app = create_app()
