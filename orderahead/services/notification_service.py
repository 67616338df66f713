# orderahead/services/notification_service.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from orderahead.celery_worker import celery_app
from orderahead.data.database import SessionLocal
from orderahead.domain.errors import DeliveryError, PersistenceError
from orderahead.domain.schemas import OrderEvent
from orderahead.services.push_client import WebPushClient
from orderahead.services.subscription_service import SubscriptionService
from orderahead.utils.logging import get_logger

logger = get_logger(__name__)


def build_new_order_payload(order_id: int, customer_name: str, total) -> dict:
    """Shape the service worker expects in its push handler."""
    return {
        "title": "New Order!",
        "body": f"{customer_name} · ${total}",
        "url": "/dashboard",
        "order_id": order_id,
    }


class PushDispatcher:
    """
    Sends one push per registered device of a business. Endpoints are
    independent: a failing one is logged (and marked stale when the push
    service says it is gone) and the loop carries on.
    """

    def __init__(self, db: Session, transport=None, clock=None):
        self.subscriptions = SubscriptionService(db)
        self.transport = transport or WebPushClient()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def dispatch(self, business_id: int, payload: dict) -> dict:
        #plain tuples, a rollback while marking one endpoint must not expire the rest
        targets = [
            (sub.id, sub.endpoint, sub.p256dh, sub.auth)
            for sub in self.subscriptions.list(business_id)
        ]
        summary = {"sent": 0, "failed": 0, "stale": 0}

        for sub_id, endpoint, p256dh, auth in targets:
            try:
                self.transport.send(endpoint, p256dh, auth, payload)
                summary["sent"] += 1
            except DeliveryError as e:
                summary["failed"] += 1
                logger.warning(f"[PUSH] business {business_id} subscription {sub_id}: {e}")
                if e.permanent:
                    #left for purge_stale_subscriptions_task
                    summary["stale"] += self._mark_stale(sub_id, endpoint)
            except Exception as e:
                summary["failed"] += 1
                logger.error(f"[PUSH] business {business_id} subscription {sub_id} unexpected error: {e}")

        logger.info(
            f"[PUSH] business {business_id}: {summary['sent']} sent, "
            f"{summary['failed']} failed, {summary['stale']} marked stale"
        )
        return summary

    def _mark_stale(self, sub_id: int, endpoint: str) -> int:
        try:
            return self.subscriptions.mark_stale(endpoint, self.clock())
        except PersistenceError as e:
            #next push to the endpoint fails again and retries the mark
            logger.error(f"[PUSH] subscription {sub_id} not marked stale: {e}")
            return 0


def get_push_transport():
    return WebPushClient()


class NotificationService:
    """
    Push notifications for owners.
    Delivery runs in a Celery worker, never inside the order request.
    """

    @staticmethod
    def send_new_order_notification(business_id: int, order_id: int, customer_name: str, total: str):
        send_new_order_push_task.delay(business_id, order_id, customer_name, total)


def enqueue_new_order_push(event: OrderEvent):
    """INSERT listener on the change feed."""
    order = event.order
    try:
        NotificationService.send_new_order_notification(
            event.business_id, order.id, order.customer_name, str(order.total)
        )
    except Exception as e:
        #broker down: the order is placed anyway, the owner still sees it live
        logger.error(f"[PUSH] could not enqueue push for order {order.id}: {e}")


@celery_app.task(name="orderahead.services.notification_service.send_new_order_push_task")
def send_new_order_push_task(business_id: int, order_id: int, customer_name: str, total: str):
    payload = build_new_order_payload(order_id, customer_name, total)

    db = SessionLocal()
    try:
        summary = PushDispatcher(db, get_push_transport()).dispatch(business_id, payload)
    finally:
        db.close()

    return {"business_id": business_id, "order_id": order_id, **summary}
