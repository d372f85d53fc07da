import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.infra.search_client import SearchIndex
from app.schemas.health import ComponentHealth, HealthResponse

logger = logging.getLogger(__name__)


class HealthService:
    def __init__(self, db: Session, *, search_index: SearchIndex) -> None:
        self.db = db
        self.search_index = search_index

    def check(self) -> HealthResponse:
        database = self.check_database()
        search = self.check_search()
        healthy = database.status == "healthy" and search.status == "healthy"
        return HealthResponse(
            status="healthy" if healthy else "degraded",
            components={"database": database, "search": search},
        )

    def check_database(self) -> ComponentHealth:
        try:
            self.db.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("database health check failed", extra={"error": str(exc)})
            return ComponentHealth(status="unhealthy", detail="database unreachable")
        return ComponentHealth(status="healthy")

    def check_search(self) -> ComponentHealth:
        if not self.search_index.ping():
            return ComponentHealth(status="unhealthy", detail="search index unreachable")
        return ComponentHealth(status="healthy", detail=f"index={self.search_index.index_name}")
