# orderahead/domain/lifecycle.py
"""
Order status lifecycle.

    pending -> preparing -> ready -> fulfilled

Forward moves are single-step only. ``cancelled`` can be reached from any
non-terminal status. ``fulfilled`` and ``cancelled`` are terminal.
"""
from orderahead.domain.errors import InvalidTransitionError

PENDING = "pending"
PREPARING = "preparing"
READY = "ready"
FULFILLED = "fulfilled"
CANCELLED = "cancelled"

STATUS_FLOW = (PENDING, PREPARING, READY, FULFILLED)
TERMINAL_STATUSES = frozenset({FULFILLED, CANCELLED})
ALL_STATUSES = STATUS_FLOW + (CANCELLED,)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def next_status(status: str) -> str:
    """Unique successor of ``status`` in the forward chain."""
    if status not in ALL_STATUSES:
        raise InvalidTransitionError(f"Unknown order status '{status}'")

    if is_terminal(status):
        raise InvalidTransitionError(f"Order is already {status}")

    return STATUS_FLOW[STATUS_FLOW.index(status) + 1]


def can_cancel(status: str) -> bool:
    return status in ALL_STATUSES and not is_terminal(status)


def status_rank(status: str) -> int:
    #terminal statuses outrank everything so late events cannot resurrect an order
    if status == CANCELLED:
        return len(STATUS_FLOW)
    return STATUS_FLOW.index(status)
