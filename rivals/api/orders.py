"""
Order completion endpoint.

Server-side mirror of client fulfillment: decrements server stock by sku.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from rivals.db import complete_order
from rivals.db.database import get_session

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderLinePayload(BaseModel):
    sku: str | int
    quantity: float | str | None = None


class OrderCompleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lines: list[OrderLinePayload] = Field(default_factory=list)
    order_id: str | None = Field(default=None, alias="orderId")


class LineChange(BaseModel):
    sku: str
    before: int
    purchased: int
    after: int


class OrderCompleteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    lines: list[LineChange] = Field(default_factory=list)
    order_id: str | None = Field(default=None, alias="orderId")
    duplicate: bool = False


@router.post("/complete", response_model=OrderCompleteResponse)
async def complete(
    payload: OrderCompleteRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OrderCompleteResponse:
    """
    Apply a completed order to server stock.

    A repeated ``orderId`` changes nothing and reports ``duplicate: true``.
    """
    if not payload.lines:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No lines provided")

    result = await complete_order(
        session,
        [{"sku": str(line.sku), "quantity": line.quantity} for line in payload.lines],
        payload.order_id,
    )
    return OrderCompleteResponse(
        lines=[LineChange(**change) for change in result.lines],
        order_id=payload.order_id,
        duplicate=result.duplicate,
    )
