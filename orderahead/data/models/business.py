#orderahead/data/models/business.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship

from orderahead.data.database import Base
from orderahead.utils.settings import DEFAULT_ACCENT_COLOR


class BusinessModel(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    logo_url = Column(String, nullable=True)
    #public ordering page lives under /order/<slug>
    slug = Column(String, nullable=False, unique=True)
    accent_color = Column(String, nullable=False, default=DEFAULT_ACCENT_COLOR)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    products = relationship(
        "ProductModel",
        back_populates="business",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    orders = relationship(
        "OrderModel",
        back_populates="business",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    push_subscriptions = relationship(
        "PushSubscriptionModel",
        back_populates="business",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
