# orderahead/api/routers/businesses.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderahead.api.deps import get_owner, http_error
from orderahead.data.database import get_db
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import OrderAheadError
from orderahead.domain.schemas import (
    BusinessIn,
    BusinessOut,
    BusinessUpdate,
    OrderConfirmationOut,
    PlaceOrderIn,
    ProductOut,
    PublicBusinessOut,
)
from orderahead.services.business_service import BusinessService
from orderahead.services.order_service import OrderService
from orderahead.services.product_service import ProductService

router = APIRouter(prefix="/businesses", tags=["businesses"])


#owner
@router.post("/", response_model=BusinessOut, status_code=201)
def create_business(
    payload: BusinessIn,
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    try:
        return BusinessService(db).create_business(ctx, **payload.model_dump())
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.get("/me", response_model=BusinessOut)
def get_my_business(ctx: OwnerContext = Depends(get_owner), db: Session = Depends(get_db)):
    try:
        return BusinessService(db).get_my_business(ctx)
    except OrderAheadError as e:
        raise http_error(e)


@router.patch("/{business_id}", response_model=BusinessOut)
def update_business(
    business_id: int,
    payload: BusinessUpdate,
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    try:
        return BusinessService(db).update_business(ctx, business_id, **payload.model_dump(exclude_unset=True))
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


#public ordering page
@router.get("/by-slug/{slug}", response_model=PublicBusinessOut)
def get_business_by_slug(slug: str, db: Session = Depends(get_db)):
    try:
        return BusinessService(db).get_by_slug(slug)
    except OrderAheadError as e:
        raise http_error(e)


@router.get("/by-slug/{slug}/menu", response_model=List[ProductOut])
def get_menu(slug: str, category: str | None = Query(None), db: Session = Depends(get_db)):
    try:
        return ProductService(db).list_menu(slug, category)
    except OrderAheadError as e:
        raise http_error(e)


@router.get("/by-slug/{slug}/categories", response_model=List[str])
def get_categories(slug: str, db: Session = Depends(get_db)):
    try:
        return ProductService(db).list_categories(slug)
    except OrderAheadError as e:
        raise http_error(e)


@router.post("/by-slug/{slug}/orders", response_model=OrderConfirmationOut, status_code=201)
def place_order(slug: str, payload: PlaceOrderIn, db: Session = Depends(get_db)):
    """
    Customer checkout. Success is only returned once order and items are committed.
    """
    try:
        return OrderService(db).place_order_by_slug(
            slug,
            customer_name=payload.customer_name,
            items=payload.items,
            customer_note=payload.customer_note,
        )
    except OrderAheadError as e:
        raise http_error(e)
