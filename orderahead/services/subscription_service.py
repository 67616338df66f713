# orderahead/services/subscription_service.py
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderahead.data.models.push_subscription import PushSubscriptionModel
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import NotFoundError, PersistenceError, ValidationError
from orderahead.repos.business_repo import BusinessRepo
from orderahead.repos.push_repo import PushSubscriptionRepo
from orderahead.utils.logging import get_logger

logger = get_logger(__name__)


class SubscriptionService:
    """Which devices get a push when a business receives an order."""

    def __init__(self, db: Session):
        self.repo = PushSubscriptionRepo(db)
        self.businesses = BusinessRepo(db)

    def register(
        self,
        ctx: OwnerContext,
        business_id: int,
        endpoint: str,
        p256dh: str,
        auth: str,
    ) -> PushSubscriptionModel:
        """
        Upsert keyed by endpoint. A device re-subscribing (new keys) or moving
        to another business updates its single row.
        """
        self.businesses.get_owned(business_id, ctx.owner_id)

        if not endpoint or not endpoint.startswith("https://"):
            raise ValidationError("Push endpoint must be an https URL")
        if not p256dh or not auth:
            raise ValidationError("Push subscription keys are required")

        sub = self.repo.upsert(business_id, endpoint, p256dh, auth)
        logger.info(f"Push endpoint registered for business {business_id} (subscription {sub.id})")
        return sub

    def unregister(self, ctx: OwnerContext, business_id: int, endpoint: str) -> None:
        self.businesses.get_owned(business_id, ctx.owner_id)
        if self.repo.delete_endpoint(business_id, endpoint) == 0:
            raise NotFoundError("Push endpoint not registered for this business")
        logger.info(f"Push endpoint removed from business {business_id}")

    def list(self, business_id: int) -> list[PushSubscriptionModel]:
        #dispatcher only, runs in the worker without an owner context
        return self.repo.list_active(business_id)

    def mark_stale(self, endpoint: str, when: datetime) -> int:
        """Push service answered 404/410, the endpoint gets no further pushes."""
        try:
            return self.repo.mark_stale(endpoint, when)
        except SQLAlchemyError as e:
            self.repo.db.rollback()
            raise PersistenceError(f"Could not mark push endpoint stale: {e}") from e
