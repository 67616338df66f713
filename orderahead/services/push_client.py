# orderahead/services/push_client.py
import json

import requests
from pywebpush import webpush, WebPushException

from orderahead.domain.errors import DeliveryError
from orderahead.utils.logging import get_logger
from orderahead.utils.retry import push_retry
from orderahead.utils.settings import (
    VAPID_PRIVATE_KEY,
    VAPID_SUBJECT,
    PUSH_TTL_SECONDS,
    PUSH_TIMEOUT_SECONDS,
)

logger = get_logger(__name__)

#push service says the subscription is gone for good
PERMANENT_STATUS_CODES = frozenset({404, 410})


class WebPushClient:
    """
    Encrypted Web Push delivery (RFC 8291) with VAPID auth.
    send() either returns or raises DeliveryError classified as permanent
    (endpoint invalid) or transient.
    """

    def __init__(
        self,
        private_key: str | None = None,
        subject: str | None = None,
        ttl: int | None = None,
        timeout: int | None = None,
    ):
        self.private_key = private_key or VAPID_PRIVATE_KEY
        self.subject = subject or VAPID_SUBJECT
        self.ttl = PUSH_TTL_SECONDS if ttl is None else ttl
        self.timeout = timeout or PUSH_TIMEOUT_SECONDS

    def send(self, endpoint: str, p256dh: str, auth: str, payload: dict) -> None:
        try:
            self._post(endpoint, p256dh, auth, json.dumps(payload))
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            raise DeliveryError(
                f"Push rejected ({status}): {e.message}",
                endpoint=endpoint,
                permanent=status in PERMANENT_STATUS_CODES,
                status_code=status,
            ) from e
        except requests.RequestException as e:
            raise DeliveryError(f"Push service unreachable: {e}", endpoint=endpoint) from e

    @push_retry()
    def _post(self, endpoint: str, p256dh: str, auth: str, data: str):
        logger.info(f"WebPush POST {endpoint[:60]}")
        return webpush(
            subscription_info={"endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}},
            data=data,
            vapid_private_key=self.private_key,
            #pywebpush fills aud/exp into the dict, so a fresh one per call
            vapid_claims={"sub": self.subject},
            ttl=self.ttl,
            timeout=self.timeout,
        )
