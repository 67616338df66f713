# orderahead/celery_worker.py
from celery import Celery

from orderahead.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    STALE_SUBSCRIPTION_GRACE_SECONDS,
)

celery_app = Celery(
    "orderahead",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly or the worker will not register them
celery_app.conf.imports = (
    "orderahead.tasks.cleanup",
    "orderahead.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "purge-stale-push-subscriptions": {
        "task": "orderahead.tasks.cleanup.purge_stale_subscriptions_task",
        "schedule": float(min(STALE_SUBSCRIPTION_GRACE_SECONDS, 60 * 60)),
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
