from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime
from sqlalchemy.orm import relationship

from orderahead.data.database import Base


class PushSubscriptionModel(Base):
    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)

    endpoint = Column(String, nullable=False, unique=True)
    p256dh = Column(String, nullable=False)
    auth = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    #set when the push service reports the endpoint gone, purged by beat task
    stale_at = Column(DateTime(timezone=True), nullable=True)

    business = relationship("BusinessModel", back_populates="push_subscriptions")
