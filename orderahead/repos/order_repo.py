# orderahead/repos/order_repo.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from orderahead.data.models.business import BusinessModel
from orderahead.data.models.order import OrderModel
from orderahead.data.models.order_item import OrderItemModel
from orderahead.domain.errors import NotFoundError, PersistenceError
from orderahead.domain.schemas import OrderEvent, OrderOut
from orderahead.realtime.change_feed import ChangeFeed
from orderahead.utils.logging import get_logger

logger = get_logger(__name__)


class OrderRepo:
    """
    Store access for orders. Every committed insert/update is published to
    the change feed from here, services never notify on their own.
    """

    def __init__(self, db: Session, feed: ChangeFeed | None = None):
        self.db = db
        if feed is None:
            from orderahead.realtime import get_change_feed
            feed = get_change_feed()
        self.feed = feed

    #query
    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def get_owned_order(self, order_id: int, owner_id: str) -> OrderModel:
        row = self.db.execute(
            select(OrderModel, BusinessModel.owner_id)
            .join(BusinessModel, BusinessModel.id == OrderModel.business_id)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        ).first()

        if row is None:
            raise NotFoundError(f"Order {order_id} not found")

        order, business_owner = row
        if business_owner != owner_id:
            raise PermissionError("No access to this order")
        return order

    def list_orders(self, business_id: int, limit: int, statuses=None) -> list[OrderModel]:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.business_id == business_id)
        )
        if statuses:
            stmt = stmt.where(OrderModel.status.in_(list(statuses)))
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    #commands
    def create_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        """
        Order row and its line items go in one transaction: either all of
        them are visible or none is.
        """
        try:
            self.db.add(order)
            self.db.flush()  # order.id

            for item in items:
                item.order_id = order.id
                self.db.add(item)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Order insert for business {order.business_id} rolled back: {e}")
            raise PersistenceError("Order could not be saved") from e

        created = self.get_order(order.id)
        self._publish("INSERT", created)
        return created

    def compare_and_set_status(
        self,
        order_id: int,
        expected_status: str,
        new_status: str,
        fulfilled_at: datetime | None = None,
    ) -> OrderModel | None:
        """
        UPDATE orders SET status = :new WHERE id = :id AND status = :expected

        Returns the updated order, or None when the row was not in
        ``expected_status`` anymore (another request won the race).
        """
        values = {"status": new_status}
        stmt = update(OrderModel).where(
            OrderModel.id == order_id,
            OrderModel.status == expected_status,
        )
        if fulfilled_at is not None:
            values["fulfilled_at"] = fulfilled_at
            stmt = stmt.where(OrderModel.fulfilled_at.is_(None))

        try:
            rowcount = self.db.execute(
                stmt.values(**values).execution_options(synchronize_session=False)
            ).rowcount

            if rowcount == 0:
                self.db.rollback()
                return None

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Status update of order {order_id} failed: {e}")
            raise PersistenceError("Order status could not be saved") from e

        #commit expired the identity map copy, this reloads it
        updated = self.get_order(order_id)
        self._publish("UPDATE", updated)
        return updated

    def _publish(self, kind: str, order: OrderModel) -> None:
        event = OrderEvent(
            type=kind,
            business_id=order.business_id,
            order=OrderOut.model_validate(order),
        )
        self.feed.publish(event)
