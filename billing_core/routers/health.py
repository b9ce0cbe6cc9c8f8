"""Health check endpoint for load balancer / platform monitoring."""

from fastapi import APIRouter
from pydantic import BaseModel

from billing_core.database import check_db_connection
from billing_core.settings import settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    environment: str
    database: str
    version: str = "1.0.0"


@router.get("/health", response_model=HealthResponse, include_in_schema=False)
def health_check() -> HealthResponse:
    """
    Returns 200 while the process is up. `status` is "degraded" when the
    database cannot be reached.
    """
    db_ok = check_db_connection()
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        environment=settings.environment,
        database="connected" if db_ok else "unreachable",
    )
