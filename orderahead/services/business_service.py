# orderahead/services/business_service.py
import re

from sqlalchemy.orm import Session

from orderahead.data.models.business import BusinessModel
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import ConflictError, NotFoundError, ValidationError
from orderahead.repos.business_repo import BusinessRepo
from orderahead.utils.logging import get_logger
from orderahead.utils.settings import DEFAULT_ACCENT_COLOR

logger = get_logger(__name__)


def normalize_slug(raw: str | None) -> str:
    """'  Corner Café ' -> 'corner-caf'"""
    slug = re.sub(r"\s+", "-", (raw or "").strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


class BusinessService:
    def __init__(self, db: Session):
        self.repo = BusinessRepo(db)

    #query
    def get_my_business(self, ctx: OwnerContext) -> BusinessModel:
        business = self.repo.get_by_owner(ctx.owner_id)
        if not business:
            raise NotFoundError("No business set up for this account yet")
        return business

    def get_by_slug(self, slug: str) -> BusinessModel:
        business = self.repo.get_by_slug(normalize_slug(slug))
        if not business:
            raise NotFoundError(f"No business at '{slug}'")
        return business

    #commands
    def create_business(
        self,
        ctx: OwnerContext,
        name: str,
        slug: str,
        description: str | None = None,
        accent_color: str | None = None,
        logo_url: str | None = None,
    ) -> BusinessModel:
        if self.repo.get_by_owner(ctx.owner_id):
            raise ConflictError("This account already has a business")

        business = BusinessModel(
            owner_id=ctx.owner_id,
            name=self._clean_name(name),
            slug=self._clean_slug(slug),
            description=description,
            accent_color=accent_color or DEFAULT_ACCENT_COLOR,
            logo_url=logo_url,
        )
        created = self.repo.save(business)

        logger.info(f"Business {created.id} '{created.slug}' created by owner {ctx.owner_id}")
        return created

    def update_business(self, ctx: OwnerContext, business_id: int, **changes) -> BusinessModel:
        business = self.repo.get_owned(business_id, ctx.owner_id)

        if changes.get("name") is not None:
            business.name = self._clean_name(changes["name"])
        if changes.get("slug") is not None:
            new_slug = self._clean_slug(changes["slug"])
            if new_slug != business.slug:
                #changes the public ordering URL
                logger.info(f"Business {business.id} slug '{business.slug}' -> '{new_slug}'")
            business.slug = new_slug
        for field in ("description", "accent_color", "logo_url"):
            if field in changes and changes[field] is not None:
                setattr(business, field, changes[field])

        return self.repo.save(business)

    @staticmethod
    def _clean_slug(raw: str) -> str:
        slug = normalize_slug(raw)
        if not slug:
            raise ValidationError("Please enter a unique URL slug for your shop")
        return slug

    @staticmethod
    def _clean_name(raw: str) -> str:
        name = (raw or "").strip()
        if not name:
            raise ValidationError("Business name is required")
        return name
