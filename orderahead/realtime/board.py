# orderahead/realtime/board.py
from datetime import date, datetime, timezone
from decimal import Decimal

from orderahead.domain.lifecycle import FULFILLED, is_terminal, status_rank
from orderahead.domain.schemas import OrderEvent, OrderOut


class OrderBoard:
    """
    Dashboard side view of one business's orders.

    A session loads the current orders first and then applies live events.
    Between the load and the subscribe an event can be seen twice or the
    load can already contain its effect, so events are upserts keyed by
    order id. Status only moves forward, an event that would move an order
    back is a stale duplicate and is dropped.
    """

    def __init__(self, business_id: int):
        self.business_id = business_id
        self._orders: dict[int, OrderOut] = {}

    def load(self, orders) -> None:
        for order in orders:
            self._upsert(OrderOut.model_validate(order))

    def apply(self, event: OrderEvent) -> bool:
        if event.business_id != self.business_id:
            return False
        return self._upsert(event.order)

    def _upsert(self, order: OrderOut) -> bool:
        current = self._orders.get(order.id)
        if current is not None:
            if status_rank(order.status) < status_rank(current.status):
                return False
            #update payloads may come without items, keep what we had
            if not order.items and current.items:
                order = order.model_copy(update={"items": current.items})
        self._orders[order.id] = order
        return True

    def get(self, order_id: int) -> OrderOut | None:
        return self._orders.get(order_id)

    def orders(self) -> list[OrderOut]:
        return sorted(self._orders.values(), key=lambda o: (o.created_at, o.id), reverse=True)

    def active(self) -> list[OrderOut]:
        return [o for o in self.orders() if not is_terminal(o.status)]

    def fulfilled(self) -> list[OrderOut]:
        return [o for o in self.orders() if o.status == FULFILLED]

    def revenue_for(self, day: date | None = None) -> Decimal:
        day = day or datetime.now(timezone.utc).date()
        return sum(
            (o.total for o in self.fulfilled() if (o.fulfilled_at or o.created_at).date() == day),
            Decimal("0.00"),
        )

    def __len__(self):
        return len(self._orders)
