from datetime import datetime, timezone

import pytest

from orderahead.data.database import SessionLocal
from orderahead.data.models import OrderModel
from orderahead.domain.errors import ConflictError, InvalidTransitionError, NotFoundError
from orderahead.repos.order_repo import OrderRepo
from orderahead.services.order_service import OrderService
from orderahead.services.status_service import StatusService

FIXED_NOW = datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def order_id(db, business, menu):
    placed = OrderService(db).place_order(
        business.id, "Jamie", [(menu["latte"].id, 2), (menu["muffin"].id, 1)]
    )
    return placed["id"]


def reload(db, order_id):
    db.expire_all()
    return db.get(OrderModel, order_id)


class TestAdvance:

    def test_full_chain_sets_fulfilled_at_only_at_the_end(self, db, owner, order_id):
        svc = StatusService(db, clock=lambda: FIXED_NOW)

        seen = []
        for shown in ("pending", "preparing", "ready"):
            order = svc.advance(owner, order_id, expected_status=shown)
            seen.append(order.status)
            if order.status != "fulfilled":
                assert order.fulfilled_at is None

        assert seen == ["preparing", "ready", "fulfilled"]
        assert reload(db, order_id).fulfilled_at.replace(tzinfo=None) == FIXED_NOW.replace(tzinfo=None)

        with pytest.raises(InvalidTransitionError):
            svc.advance(owner, order_id, expected_status="fulfilled")

    def test_fulfilled_at_never_changes_afterwards(self, db, owner, order_id):
        for shown in ("pending", "preparing", "ready"):
            StatusService(db, clock=lambda: FIXED_NOW).advance(owner, order_id, expected_status=shown)
        stamped = reload(db, order_id).fulfilled_at

        later = StatusService(db, clock=lambda: datetime(2030, 1, 1, tzinfo=timezone.utc))
        with pytest.raises(InvalidTransitionError):
            later.advance(owner, order_id, expected_status="fulfilled")
        with pytest.raises(InvalidTransitionError):
            later.cancel(owner, order_id, expected_status="fulfilled")

        order = reload(db, order_id)
        assert order.status == "fulfilled"
        assert order.fulfilled_at == stamped

    def test_cancelled_order_cannot_advance(self, db, owner, order_id):
        svc = StatusService(db)
        svc.cancel(owner, order_id, expected_status="pending")

        with pytest.raises(InvalidTransitionError):
            svc.advance(owner, order_id, expected_status="cancelled")

        order = reload(db, order_id)
        assert order.status == "cancelled"
        assert order.fulfilled_at is None

    @pytest.mark.parametrize("shown", ["pending", "preparing", "ready"])
    def test_cancel_from_any_open_status(self, db, owner, order_id, shown):
        svc = StatusService(db)
        for step in ("pending", "preparing", "ready"):
            if step == shown:
                break
            svc.advance(owner, order_id, expected_status=step)

        assert svc.cancel(owner, order_id, expected_status=shown).status == "cancelled"

    def test_stale_expected_status_is_a_conflict(self, db, owner, order_id):
        svc = StatusService(db)
        svc.advance(owner, order_id, expected_status="pending")

        with pytest.raises(ConflictError):
            svc.advance(owner, order_id, expected_status="pending")

        assert reload(db, order_id).status == "preparing"

    def test_repeated_tap_from_the_same_view_moves_one_step(self, db, owner, order_id):
        svc = StatusService(db, clock=lambda: FIXED_NOW)
        svc.advance(owner, order_id, expected_status="pending")

        assert svc.advance(owner, order_id, expected_status="preparing").status == "ready"
        with pytest.raises(ConflictError):
            svc.advance(owner, order_id, expected_status="preparing")

        order = reload(db, order_id)
        assert order.status == "ready"
        assert order.fulfilled_at is None

    def test_unknown_expected_status(self, db, owner, order_id):
        with pytest.raises(InvalidTransitionError):
            StatusService(db).advance(owner, order_id, expected_status="shipped")
        assert reload(db, order_id).status == "pending"

    def test_other_owner_cannot_transition(self, db, other_owner, order_id):
        with pytest.raises(PermissionError):
            StatusService(db).advance(other_owner, order_id, expected_status="pending")
        assert reload(db, order_id).status == "pending"

    def test_unknown_order(self, db, owner):
        with pytest.raises(NotFoundError):
            StatusService(db).advance(owner, 424242, expected_status="pending")


class TestConcurrentAdvance:

    def test_two_devices_from_preparing_only_one_wins(self, db, owner, order_id):
        StatusService(db).advance(owner, order_id, expected_status="pending")

        first_db, second_db = SessionLocal(), SessionLocal()
        try:
            first = StatusService(first_db)
            second = StatusService(second_db)

            #both devices have the order on screen as "preparing"
            assert first.advance(owner, order_id, expected_status="preparing").status == "ready"
            with pytest.raises(ConflictError):
                second.advance(owner, order_id, expected_status="preparing")
        finally:
            first_db.close()
            second_db.close()

        order = reload(db, order_id)
        assert order.status == "ready"
        assert order.fulfilled_at is None

    def test_second_device_with_stale_session_loses_the_race(self, db, owner, order_id):
        second_db = SessionLocal()
        try:
            second = StatusService(second_db)
            #second device read the order before the first one acted
            assert second.repo.get_owned_order(order_id, owner.owner_id).status == "pending"

            StatusService(db).advance(owner, order_id, expected_status="pending")

            with pytest.raises(ConflictError):
                second.advance(owner, order_id, expected_status="pending")
        finally:
            second_db.close()

        assert reload(db, order_id).status == "preparing"

    def test_compare_and_set_applies_once(self, db, order_id, feed):
        repo = OrderRepo(db, feed)

        assert repo.compare_and_set_status(order_id, "pending", "preparing") is not None
        assert repo.compare_and_set_status(order_id, "pending", "preparing") is None
        assert reload(db, order_id).status == "preparing"

    def test_fulfilled_at_is_written_once(self, db, order_id, feed):
        repo = OrderRepo(db, feed)
        repo.compare_and_set_status(order_id, "pending", "preparing")
        repo.compare_and_set_status(order_id, "preparing", "ready")

        won = repo.compare_and_set_status(order_id, "ready", "fulfilled", fulfilled_at=FIXED_NOW)
        lost = repo.compare_and_set_status(
            order_id, "ready", "fulfilled", fulfilled_at=datetime(2030, 1, 1, tzinfo=timezone.utc)
        )

        assert won is not None
        assert lost is None
        assert reload(db, order_id).fulfilled_at.year == 2026
