# orderahead/tasks/cleanup.py
from datetime import datetime, timezone, timedelta

from orderahead.celery_worker import celery_app
from orderahead.data.database import SessionLocal
from orderahead.repos.push_repo import PushSubscriptionRepo
from orderahead.utils.logging import get_logger
from orderahead.utils.settings import STALE_SUBSCRIPTION_GRACE_SECONDS

logger = get_logger(__name__)


@celery_app.task(name="orderahead.tasks.cleanup.purge_stale_subscriptions_task")
def purge_stale_subscriptions_task(grace_seconds: int | None = None):
    grace = STALE_SUBSCRIPTION_GRACE_SECONDS if grace_seconds is None else grace_seconds
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=grace)

    logger.info(f"Purging push subscriptions marked stale before {cutoff.isoformat()}")

    db = SessionLocal()
    try:
        removed = PushSubscriptionRepo(db).purge_stale(cutoff)
    finally:
        db.close()

    logger.info(f"Removed {removed} stale push subscriptions")
    return {"removed": removed}
