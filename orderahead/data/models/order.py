from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from orderahead.data.database import Base
from orderahead.domain.lifecycle import ALL_STATUSES, PENDING

_STATUS_CHECK = "status IN ({})".format(", ".join(f"'{s}'" for s in ALL_STATUSES))


class OrderModel(Base):
    __tablename__ = "orders"
    __table_args__ = (CheckConstraint(_STATUS_CHECK, name="ck_orders_status"),)

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)

    customer_name = Column(String, nullable=False)
    customer_note = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=PENDING)
    #computed once at intake, never recomputed
    total = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    fulfilled_at = Column(DateTime(timezone=True), nullable=True)

    business = relationship("BusinessModel", back_populates="orders")
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItemModel.id",
    )
