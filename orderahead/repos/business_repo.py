# orderahead/repos/business_repo.py
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from orderahead.data.models.business import BusinessModel
from orderahead.domain.errors import ConflictError, NotFoundError, PersistenceError


class BusinessRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_business(self, business_id: int) -> BusinessModel | None:
        return self.db.get(BusinessModel, business_id)

    def get_by_slug(self, slug: str) -> BusinessModel | None:
        return self.db.execute(
            select(BusinessModel).where(BusinessModel.slug == slug)
        ).scalar_one_or_none()

    def get_by_owner(self, owner_id: str) -> BusinessModel | None:
        return self.db.execute(
            select(BusinessModel).where(BusinessModel.owner_id == owner_id).order_by(BusinessModel.id)
        ).scalars().first()

    def get_owned(self, business_id: int, owner_id: str) -> BusinessModel:
        business = self.get_business(business_id)
        if not business:
            raise NotFoundError(f"Business {business_id} not found")
        if business.owner_id != owner_id:
            raise PermissionError("No access to this business")
        return business

    def save(self, business: BusinessModel) -> BusinessModel:
        self.db.add(business)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Slug '{business.slug}' is already taken")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not save business: {e}") from e
        self.db.refresh(business)
        return business
