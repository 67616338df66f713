# orderahead/services/status_service.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from orderahead.domain import lifecycle
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import ConflictError, InvalidTransitionError
from orderahead.realtime.change_feed import ChangeFeed
from orderahead.repos.order_repo import OrderRepo
from orderahead.utils.logging import get_logger

logger = get_logger(__name__)


class StatusService:
    """
    Owner initiated status transitions.

    The caller always says which status it saw on screen. That status, not
    whatever the row holds when the request arrives, is the compare-and-set
    guard: two taps on "advance" from the same view move the order one step,
    the second tap gets a ConflictError and fulfilled_at is set once.
    """

    def __init__(self, db: Session, feed: ChangeFeed | None = None, clock=None):
        self.repo = OrderRepo(db, feed)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def advance(self, ctx: OwnerContext, order_id: int, expected_status: str):
        order = self.repo.get_owned_order(order_id, ctx.owner_id)
        self._check_expected(order, expected_status)

        target = lifecycle.next_status(expected_status)
        fulfilled_at = self.clock() if target == lifecycle.FULFILLED else None

        return self._apply(order_id, expected_status, target, fulfilled_at)

    def cancel(self, ctx: OwnerContext, order_id: int, expected_status: str):
        order = self.repo.get_owned_order(order_id, ctx.owner_id)
        self._check_expected(order, expected_status)

        if not lifecycle.can_cancel(expected_status):
            raise InvalidTransitionError(f"Order {order_id} is already {expected_status}")

        return self._apply(order_id, expected_status, lifecycle.CANCELLED)

    @staticmethod
    def _check_expected(order, expected_status: str) -> None:
        if expected_status not in lifecycle.ALL_STATUSES:
            raise InvalidTransitionError(f"Unknown order status '{expected_status}'")
        if expected_status != order.status:
            #owner acted on an outdated view, do not guess a different target
            raise ConflictError(
                f"Order {order.id} is {order.status}, not {expected_status}. Refresh and try again"
            )

    def _apply(self, order_id: int, expected: str, target: str, fulfilled_at=None):
        updated = self.repo.compare_and_set_status(
            order_id=order_id,
            expected_status=expected,
            new_status=target,
            fulfilled_at=fulfilled_at,
        )

        if updated is None:
            logger.warning(f"Order {order_id}: {expected} -> {target} lost a concurrent update")
            raise ConflictError(f"Order {order_id} was changed by another request. Refresh and try again")

        logger.info(f"Order {order_id}: {expected} -> {target}")
        return updated
