"""
Health check endpoints.

Provides liveness and readiness checks. Readiness requires the inventory
table to be queryable, not just a live connection.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rivals.db.database import get_session
from rivals.models.db import InventoryRecordDB

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    inventory_records: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness check.

    Counts inventory records. Returns 503 if the database is unreachable or
    the inventory table has not been created.
    """
    try:
        result = await session.execute(select(func.count()).select_from(InventoryRecordDB))
        return HealthResponse(
            status="ready", database="connected", inventory_records=result.scalar_one()
        )
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
