# orderahead/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime


class BusinessIn(BaseModel):
    """Schema for business setup."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    slug: str = Field(..., description="Public URL fragment, normalized server side")
    accent_color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    logo_url: str | None = None


class BusinessUpdate(BaseModel):
    """Schema for partial business update."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    slug: str | None = None
    accent_color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    logo_url: str | None = None


class BusinessOut(BaseModel):
    id: int
    owner_id: str
    name: str
    description: str | None = None
    logo_url: str | None = None
    slug: str
    accent_color: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicBusinessOut(BaseModel):
    """What customers see on the ordering page (no owner identity)."""

    id: int
    name: str
    description: str | None = None
    logo_url: str | None = None
    slug: str
    accent_color: str

    model_config = ConfigDict(from_attributes=True)


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    price: Decimal = Field(..., ge=0, description="Price, rounded to 2 decimals")
    image_url: str | None = None
    category: str | None = None
    available: bool = True


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0)
    image_url: str | None = None
    category: str | None = None
    available: bool | None = None
    sort_order: int | None = Field(None, ge=0)


class ProductOut(BaseModel):
    id: int
    business_id: int
    name: str
    description: str | None = None
    price: Decimal
    image_url: str | None = None
    category: str
    available: bool
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


class OrderItemIn(BaseModel):
    """One cart entry. Price and name are taken from the store, never from the client."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., description="Must be >= 1")


class PlaceOrderIn(BaseModel):
    """Schema for placing an order from the public menu page."""

    customer_name: str
    customer_note: str | None = None
    items: List[OrderItemIn]


class OrderCreate(PlaceOrderIn):
    business_id: int = Field(..., gt=0)


class OrderItemOut(BaseModel):
    id: int
    product_id: int | None = None
    name: str
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Full order row with its line items (owner side)."""

    id: int
    business_id: int
    customer_name: str
    customer_note: str | None = None
    status: str
    total: Decimal
    created_at: datetime
    fulfilled_at: datetime | None = None
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderConfirmationOut(BaseModel):
    """Returned to the customer after intake commits."""

    id: int
    business_id: int
    customer_name: str
    status: str
    total: Decimal
    created_at: datetime
    item_count: int


class TransitionIn(BaseModel):
    """
    Status the owner saw when acting. If the order moved on in the meantime
    the transition is rejected instead of being applied to a newer status.
    """

    expected_status: Literal["pending", "preparing", "ready", "fulfilled", "cancelled"]


class OrderEvent(BaseModel):
    type: Literal["INSERT", "UPDATE"]
    business_id: int
    order: OrderOut


class DashboardSummaryOut(BaseModel):
    active_count: int
    fulfilled_today: int
    revenue_today: Decimal


class PushKeysIn(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscriptionIn(BaseModel):
    """Same shape as the browser's PushSubscription.toJSON()."""

    endpoint: str = Field(..., min_length=1)
    keys: PushKeysIn


class PushSubscriptionOut(BaseModel):
    id: int
    business_id: int
    endpoint: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VapidKeyOut(BaseModel):
    public_key: str
