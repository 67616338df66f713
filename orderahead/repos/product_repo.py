# orderahead/repos/product_repo.py
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderahead.data.models.product import ProductModel
from orderahead.domain.errors import PersistenceError


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_many(self, product_ids) -> dict[int, ProductModel]:
        ids = list(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        ).scalars().all()
        return {p.id: p for p in rows}

    def list_for_business(
        self,
        business_id: int,
        available_only: bool = False,
        category: str | None = None,
    ) -> list[ProductModel]:
        stmt = select(ProductModel).where(ProductModel.business_id == business_id)
        if available_only:
            stmt = stmt.where(ProductModel.available.is_(True))
        if category:
            stmt = stmt.where(ProductModel.category == category)
        stmt = stmt.order_by(ProductModel.sort_order, ProductModel.id)
        return list(self.db.execute(stmt).scalars().all())

    def count_for_business(self, business_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.business_id == business_id)
        ).scalar_one()

    def save(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self._commit("save product")
        self.db.refresh(product)
        return product

    def delete(self, product: ProductModel) -> None:
        self.db.delete(product)
        self._commit("delete product")

    def _commit(self, what: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not {what}: {e}") from e
