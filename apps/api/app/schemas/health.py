from typing import Literal

from pydantic import BaseModel


class ComponentHealth(BaseModel):
    status: Literal["healthy", "unhealthy"]
    detail: str | None = None


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    components: dict[str, ComponentHealth]
