# orderahead/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderahead.api.deps import get_owner, http_error
from orderahead.data.database import get_db
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import OrderAheadError
from orderahead.domain.schemas import (
    DashboardSummaryOut,
    OrderConfirmationOut,
    OrderCreate,
    OrderOut,
    TransitionIn,
)
from orderahead.services.order_service import OrderService
from orderahead.services.status_service import StatusService

router = APIRouter(tags=["orders"])


@router.post("/orders", response_model=OrderConfirmationOut, status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    """
    Customer places an order. No owner identity needed, insert only.
    """
    try:
        return OrderService(db).place_order(
            payload.business_id,
            customer_name=payload.customer_name,
            items=payload.items,
            customer_note=payload.customer_note,
        )
    except OrderAheadError as e:
        raise http_error(e)


@router.get("/businesses/{business_id}/orders", response_model=List[OrderOut])
def list_orders(
    business_id: int,
    view: str = Query("all", pattern="^(all|active|fulfilled)$"),
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Newest first. Dashboard initial load before attaching the live feed."""
    try:
        return OrderService(db).list_orders(ctx, business_id, view)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.get("/businesses/{business_id}/orders/summary", response_model=DashboardSummaryOut)
def order_summary(business_id: int, ctx: OwnerContext = Depends(get_owner), db: Session = Depends(get_db)):
    try:
        return OrderService(db).summary(ctx, business_id)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: int, ctx: OwnerContext = Depends(get_owner), db: Session = Depends(get_db)):
    try:
        return OrderService(db).get_order(ctx, order_id)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.post("/orders/{order_id}/advance", response_model=OrderOut)
def advance_order(
    order_id: int,
    payload: TransitionIn,
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """
    pending -> preparing -> ready -> fulfilled, one step per call.
    The body carries the status the owner saw, a repeated tap gets 409.
    """
    try:
        return StatusService(db).advance(ctx, order_id, expected_status=payload.expected_status)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.post("/orders/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    payload: TransitionIn,
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    try:
        return StatusService(db).cancel(ctx, order_id, expected_status=payload.expected_status)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)
