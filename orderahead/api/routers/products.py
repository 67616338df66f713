# orderahead/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from orderahead.api.deps import get_owner, http_error
from orderahead.data.database import get_db
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import OrderAheadError
from orderahead.domain.schemas import ProductIn, ProductOut, ProductUpdate
from orderahead.services.product_service import ProductService

router = APIRouter(tags=["products"])


@router.get("/businesses/{business_id}/products", response_model=List[ProductOut])
def list_products(business_id: int, ctx: OwnerContext = Depends(get_owner), db: Session = Depends(get_db)):
    try:
        return ProductService(db).list_products(ctx, business_id)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.post("/businesses/{business_id}/products", response_model=ProductOut, status_code=201)
def create_product(
    business_id: int,
    payload: ProductIn,
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).create_product(ctx, business_id, **payload.model_dump())
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    try:
        return ProductService(db).update_product(ctx, product_id, **payload.model_dump(exclude_unset=True))
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.post("/products/{product_id}/toggle", response_model=ProductOut)
def toggle_product(product_id: int, ctx: OwnerContext = Depends(get_owner), db: Session = Depends(get_db)):
    try:
        return ProductService(db).toggle_availability(ctx, product_id)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: int, ctx: OwnerContext = Depends(get_owner), db: Session = Depends(get_db)):
    try:
        ProductService(db).delete_product(ctx, product_id)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)
    return Response(status_code=204)
