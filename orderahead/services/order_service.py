# orderahead/services/order_service.py
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from orderahead.data.models.order import OrderModel
from orderahead.data.models.order_item import OrderItemModel
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import NotFoundError, ValidationError
from orderahead.domain.lifecycle import ALL_STATUSES, FULFILLED, PENDING, is_terminal
from orderahead.realtime.change_feed import ChangeFeed
from orderahead.repos.business_repo import BusinessRepo
from orderahead.repos.order_repo import OrderRepo
from orderahead.repos.product_repo import ProductRepo
from orderahead.services.business_service import normalize_slug
from orderahead.utils.logging import get_logger
from orderahead.utils.settings import ORDER_LIST_LIMIT

logger = get_logger(__name__)

CENT = Decimal("0.01")


def order_total(lines) -> Decimal:
    """Sum of price * quantity over (price, quantity) pairs, rounded to cents."""
    total = sum((Decimal(price) * quantity for price, quantity in lines), Decimal("0.00"))
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


class OrderService:
    """
    Order domain use cases.

    Customers only ever create orders (place_order); reading and listing is
    owner side and goes through the owner scoped repo methods.
    """

    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        self.repo = OrderRepo(db, feed)
        self.businesses = BusinessRepo(db)
        self.products = ProductRepo(db)

    #commands
    def place_order(
        self,
        business_id: int,
        customer_name: str,
        items,
        customer_note: str | None = None,
    ):
        """
        Use Case: customer places an order.

        1. validates name and cart
        2. snapshots name/price of every product from the store
        3. writes order + line items in one transaction
        4. the commit itself triggers the dashboard event and the push
        """
        name = (customer_name or "").strip()
        if not name:
            raise ValidationError("Customer name is required")

        cart = self._merge_cart(items)
        if not cart:
            raise ValidationError("Cart is empty")

        business = self.businesses.get_business(business_id)
        if not business:
            raise NotFoundError(f"Business {business_id} not found")

        products = self.products.get_many(cart.keys())
        line_items = []
        for product_id, quantity in cart.items():
            product = products.get(product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            if product.business_id != business.id:
                raise ValidationError(f"Product {product_id} is not on this menu")
            if not product.available:
                raise ValidationError(f"{product.name} is currently unavailable")

            line_items.append(
                OrderItemModel(
                    product_id=product.id,
                    name=product.name,
                    price=Decimal(product.price),
                    quantity=quantity,
                )
            )

        total = order_total((i.price, i.quantity) for i in line_items)
        note = (customer_note or "").strip() or None

        order = OrderModel(
            business_id=business.id,
            customer_name=name,
            customer_note=note,
            status=PENDING,
            total=total,
        )

        created = self.repo.create_order(order, line_items)

        logger.info(
            f"Order {created.id} placed at business {business.id} by '{name}': "
            f"{len(line_items)} lines, total {total}"
        )

        return {
            "id": created.id,
            "business_id": created.business_id,
            "customer_name": created.customer_name,
            "status": created.status,
            "total": created.total,
            "created_at": created.created_at,
            "item_count": len(created.items),
        }

    def place_order_by_slug(self, slug: str, customer_name: str, items, customer_note: str | None = None):
        business = self.businesses.get_by_slug(normalize_slug(slug))
        if not business:
            raise NotFoundError(f"No business at '{slug}'")
        return self.place_order(business.id, customer_name, items, customer_note)

    #query
    def get_order(self, ctx: OwnerContext, order_id: int) -> OrderModel:
        return self.repo.get_owned_order(order_id, ctx.owner_id)

    def list_orders(self, ctx: OwnerContext, business_id: int, view: str = "all", limit: int | None = None):
        self.businesses.get_owned(business_id, ctx.owner_id)

        if view == "active":
            statuses = [s for s in ALL_STATUSES if not is_terminal(s)]
        elif view == "fulfilled":
            statuses = [FULFILLED]
        elif view == "all":
            statuses = None
        else:
            raise ValidationError(f"Unknown order view '{view}'")

        return self.repo.list_orders(business_id, limit or ORDER_LIST_LIMIT, statuses)

    def summary(self, ctx: OwnerContext, business_id: int, today=None):
        orders = self.list_orders(ctx, business_id)
        today = today or datetime.now(timezone.utc).date()

        fulfilled_today = [
            o for o in orders
            if o.status == FULFILLED and (o.fulfilled_at or o.created_at).date() == today
        ]

        return {
            "active_count": sum(1 for o in orders if not is_terminal(o.status)),
            "fulfilled_today": len(fulfilled_today),
            "revenue_today": sum((o.total for o in fulfilled_today), Decimal("0.00")),
        }

    @staticmethod
    def _merge_cart(items) -> "OrderedDict[int, int]":
        #same product twice in one cart -> one line with summed quantity
        cart: OrderedDict[int, int] = OrderedDict()
        for entry in items or []:
            if isinstance(entry, dict):
                product_id, quantity = entry["product_id"], entry["quantity"]
            elif hasattr(entry, "product_id"):
                product_id, quantity = entry.product_id, entry.quantity
            else:
                product_id, quantity = entry

            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                raise ValidationError(f"Quantity for product {product_id} must be at least 1")

            cart[product_id] = cart.get(product_id, 0) + quantity
        return cart
