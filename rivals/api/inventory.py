"""
Inventory API endpoints.

Public listing plus the admin publishing endpoints used by the CSV
import workflow.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from rivals.api.deps import require_admin
from rivals.db import (
    bulk_upsert_inventory,
    export_inventory_csv,
    get_inventory,
    replace_inventory,
)
from rivals.db.database import get_session

router = APIRouter(tags=["inventory"])


class ItemsPayload(BaseModel):
    """Request body for admin publishing."""

    items: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Inventory rows; any column spelling the normalizer accepts",
        examples=[[{"name": "Charizard", "set": "Base", "number": "4", "quantity": 2}]],
    )


class ReplaceResponse(BaseModel):
    ok: bool = True
    replaced: int


class BulkUpsertResponse(BaseModel):
    ok: bool = True
    added: int
    updated: int
    total: int


@router.get("/inventory", response_model=list[dict[str, Any]])
async def list_inventory(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[dict[str, Any]]:
    """Every inventory record, normalized."""
    return await get_inventory(session)


@router.get("/inventory/export.csv", dependencies=[Depends(require_admin)])
async def export_inventory(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Response:
    """Inventory as CSV (admin only)."""
    body = await export_inventory_csv(session)
    return Response(content=body, media_type="text/csv")


@router.post(
    "/admin/inventory/replace",
    response_model=ReplaceResponse,
    dependencies=[Depends(require_admin)],
)
async def replace(
    payload: ItemsPayload,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ReplaceResponse:
    """Discard the server inventory and store the posted items."""
    count = await replace_inventory(session, payload.items)
    return ReplaceResponse(replaced=count)


@router.post(
    "/admin/inventory/bulk-upsert",
    response_model=BulkUpsertResponse,
    dependencies=[Depends(require_admin)],
)
async def bulk_upsert(
    payload: ItemsPayload,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> BulkUpsertResponse:
    """Merge the posted items into the server inventory by sku."""
    counts = await bulk_upsert_inventory(session, payload.items)
    return BulkUpsertResponse(added=counts.added, updated=counts.updated, total=counts.total)
