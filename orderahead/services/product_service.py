# orderahead/services/product_service.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy.orm import Session

from orderahead.data.models.product import ProductModel
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import NotFoundError, ValidationError
from orderahead.repos.business_repo import BusinessRepo
from orderahead.repos.product_repo import ProductRepo
from orderahead.services.business_service import normalize_slug
from orderahead.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATEGORY = "General"


def parse_price(value) -> Decimal:
    try:
        price = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid price '{value}'")
    if not price.is_finite() or price < 0:
        raise ValidationError("Price must be 0 or more")
    return price


class ProductService:
    """Menu management (owner) and menu listing (public)."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)
        self.businesses = BusinessRepo(db)

    #query - public
    def list_menu(self, slug: str, category: str | None = None) -> list[ProductModel]:
        business = self.businesses.get_by_slug(normalize_slug(slug))
        if not business:
            raise NotFoundError(f"No business at '{slug}'")
        return self.repo.list_for_business(business.id, available_only=True, category=category)

    def list_categories(self, slug: str) -> list[str]:
        seen = []
        for product in self.list_menu(slug):
            if product.category and product.category not in seen:
                seen.append(product.category)
        return seen

    #query - owner
    def list_products(self, ctx: OwnerContext, business_id: int) -> list[ProductModel]:
        self.businesses.get_owned(business_id, ctx.owner_id)
        return self.repo.list_for_business(business_id)

    #commands
    def create_product(
        self,
        ctx: OwnerContext,
        business_id: int,
        name: str,
        price,
        description: str | None = None,
        image_url: str | None = None,
        category: str | None = None,
        available: bool = True,
    ) -> ProductModel:
        self.businesses.get_owned(business_id, ctx.owner_id)

        name = (name or "").strip()
        if not name:
            raise ValidationError("Product needs a name")

        product = ProductModel(
            business_id=business_id,
            name=name,
            description=(description or "").strip() or None,
            price=parse_price(price),
            image_url=image_url or None,
            category=category or DEFAULT_CATEGORY,
            available=available,
            #new products go to the end of the menu
            sort_order=self.repo.count_for_business(business_id),
        )
        created = self.repo.save(product)

        logger.info(f"Product {created.id} '{created.name}' added to business {business_id}")
        return created

    def update_product(self, ctx: OwnerContext, product_id: int, **changes) -> ProductModel:
        product = self._get_owned(ctx, product_id)

        if changes.get("name") is not None:
            name = changes["name"].strip()
            if not name:
                raise ValidationError("Product needs a name")
            product.name = name
        if changes.get("price") is not None:
            product.price = parse_price(changes["price"])
        if changes.get("category") is not None:
            product.category = changes["category"] or DEFAULT_CATEGORY
        for field in ("description", "image_url", "available", "sort_order"):
            if changes.get(field) is not None:
                setattr(product, field, changes[field])

        return self.repo.save(product)

    def toggle_availability(self, ctx: OwnerContext, product_id: int) -> ProductModel:
        product = self._get_owned(ctx, product_id)
        product.available = not product.available
        saved = self.repo.save(product)

        logger.info(f"Product {product_id} {'enabled' if saved.available else 'hidden'}")
        return saved

    def delete_product(self, ctx: OwnerContext, product_id: int) -> None:
        product = self._get_owned(ctx, product_id)
        #past order lines keep their snapshot, product_id goes NULL
        self.repo.delete(product)
        logger.info(f"Product {product_id} removed")

    def _get_owned(self, ctx: OwnerContext, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        self.businesses.get_owned(product.business_id, ctx.owner_id)
        return product
