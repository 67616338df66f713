from decimal import Decimal

import anyio
import pytest
from starlette.websockets import WebSocketDisconnect

from orderahead.utils.settings import LIVE_FEED_THREADS

OWNER = {"owner_id": "owner-a"}
STRANGER = {"owner_id": "owner-b"}


def place(client, menu, name="Jamie"):
    return client.post(
        "/businesses/by-slug/corner-cafe/orders",
        json={
            "customer_name": name,
            "customer_note": "extra hot",
            "items": [
                {"product_id": menu["latte"].id, "quantity": 2},
                {"product_id": menu["muffin"].id, "quantity": 1},
            ],
        },
    )


def advance(client, order_id, shown):
    return client.post(f"/orders/{order_id}/advance", params=OWNER, json={"expected_status": shown})


class TestPublicApi:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_business_page_and_menu(self, client, business, menu):
        page = client.get("/businesses/by-slug/corner-cafe")
        assert page.status_code == 200
        assert "owner_id" not in page.json()

        names = [p["name"] for p in client.get("/businesses/by-slug/corner-cafe/menu").json()]
        assert names == ["Latte", "Muffin"]

    def test_unknown_slug(self, client):
        assert client.get("/businesses/by-slug/nowhere").status_code == 404

    def test_place_order(self, client, business, menu):
        resp = place(client, menu)

        assert resp.status_code == 201
        body = resp.json()
        assert Decimal(body["total"]) == Decimal("12.00")
        assert body["status"] == "pending"
        assert body["item_count"] == 2

    def test_menu_and_checkout_accept_the_same_slug_spelling(self, client, business, menu):
        assert client.get("/businesses/by-slug/Corner-Cafe/menu").status_code == 200

        resp = client.post(
            "/businesses/by-slug/Corner-Cafe/orders",
            json={"customer_name": "Jamie", "items": [{"product_id": menu["latte"].id, "quantity": 1}]},
        )
        assert resp.status_code == 201
        assert resp.json()["business_id"] == business.id

    def test_place_order_by_business_id(self, client, business, menu):
        resp = client.post(
            "/orders",
            json={"business_id": business.id, "customer_name": "Sam", "items": [{"product_id": menu["muffin"].id, "quantity": 1}]},
        )
        assert resp.status_code == 201

    def test_blank_name_is_400(self, client, business, menu):
        resp = client.post(
            "/businesses/by-slug/corner-cafe/orders",
            json={"customer_name": "  ", "items": [{"product_id": menu["latte"].id, "quantity": 1}]},
        )
        assert resp.status_code == 400

    def test_empty_cart_is_400(self, client, business):
        resp = client.post("/businesses/by-slug/corner-cafe/orders", json={"customer_name": "Jamie", "items": []})
        assert resp.status_code == 400

    def test_unknown_business_is_404(self, client):
        resp = client.post(
            "/orders",
            json={"business_id": 999, "customer_name": "Jamie", "items": [{"product_id": 1, "quantity": 1}]},
        )
        assert resp.status_code == 404

    def test_customers_cannot_read_orders(self, client, business, menu):
        order_id = place(client, menu).json()["id"]
        assert client.get(f"/orders/{order_id}").status_code == 422
        assert client.get(f"/orders/{order_id}", params=STRANGER).status_code == 403


class TestOwnerApi:

    def test_create_business(self, client):
        resp = client.post("/businesses/", params=OWNER, json={"name": "Corner Cafe", "slug": "Corner Cafe"})
        assert resp.status_code == 201
        assert resp.json()["slug"] == "corner-cafe"

        taken = client.post("/businesses/", params=STRANGER, json={"name": "Other", "slug": "corner-cafe"})
        assert taken.status_code == 409

    def test_product_crud(self, client, business):
        created = client.post(
            f"/businesses/{business.id}/products",
            params=OWNER,
            json={"name": "Latte", "price": "4.5", "category": "Coffee"},
        )
        assert created.status_code == 201
        product_id = created.json()["id"]

        updated = client.patch(f"/products/{product_id}", params=OWNER, json={"price": "5"})
        assert Decimal(updated.json()["price"]) == Decimal("5.00")

        toggled = client.post(f"/products/{product_id}/toggle", params=OWNER)
        assert toggled.json()["available"] is False

        assert client.delete(f"/products/{product_id}", params=STRANGER).status_code == 403
        assert client.delete(f"/products/{product_id}", params=OWNER).status_code == 204
        assert client.get(f"/businesses/{business.id}/products", params=OWNER).json() == []

    def test_end_to_end_lifecycle(self, client, business, menu):
        order_id = place(client, menu).json()["id"]

        statuses = []
        for shown in ("pending", "preparing", "ready"):
            resp = advance(client, order_id, shown)
            assert resp.status_code == 200
            statuses.append((resp.json()["status"], resp.json()["fulfilled_at"] is not None))

        assert statuses == [("preparing", False), ("ready", False), ("fulfilled", True)]

        fourth = advance(client, order_id, "fulfilled")
        assert fourth.status_code == 409

        order = client.get(f"/orders/{order_id}", params=OWNER).json()
        assert order["status"] == "fulfilled"
        assert len(order["items"]) == 2
        assert order["customer_note"] == "extra hot"

    def test_double_tap_moves_one_step(self, client, business, menu):
        order_id = place(client, menu).json()["id"]
        advance(client, order_id, "pending")

        first = advance(client, order_id, "preparing")
        second = advance(client, order_id, "preparing")

        assert first.json()["status"] == "ready"
        assert second.status_code == 409

        order = client.get(f"/orders/{order_id}", params=OWNER).json()
        assert order["status"] == "ready"
        assert order["fulfilled_at"] is None

    def test_transition_requires_the_status_seen(self, client, business, menu):
        order_id = place(client, menu).json()["id"]

        assert client.post(f"/orders/{order_id}/advance", params=OWNER).status_code == 422
        assert advance(client, order_id, "shipped").status_code == 422
        assert client.get(f"/orders/{order_id}", params=OWNER).json()["status"] == "pending"

    def test_cancel(self, client, business, menu):
        order_id = place(client, menu).json()["id"]

        cancelled = client.post(f"/orders/{order_id}/cancel", params=OWNER, json={"expected_status": "pending"})
        assert cancelled.json()["status"] == "cancelled"
        assert advance(client, order_id, "cancelled").status_code == 409

    def test_stranger_cannot_advance(self, client, business, menu):
        order_id = place(client, menu).json()["id"]
        resp = client.post(f"/orders/{order_id}/advance", params=STRANGER, json={"expected_status": "pending"})
        assert resp.status_code == 403

    def test_list_and_summary(self, client, business, menu):
        first = place(client, menu, "Jamie").json()["id"]
        place(client, menu, "Sam")
        for shown in ("pending", "preparing", "ready"):
            advance(client, first, shown)

        all_orders = client.get(f"/businesses/{business.id}/orders", params=OWNER).json()
        assert [o["customer_name"] for o in all_orders] == ["Sam", "Jamie"]

        active = client.get(f"/businesses/{business.id}/orders", params={**OWNER, "view": "active"}).json()
        assert [o["customer_name"] for o in active] == ["Sam"]

        summary = client.get(f"/businesses/{business.id}/orders/summary", params=OWNER).json()
        assert summary["active_count"] == 1
        assert summary["fulfilled_today"] == 1
        assert Decimal(summary["revenue_today"]) == Decimal("12.00")

    def test_push_subscription_endpoints(self, client, business):
        sub = {"endpoint": "https://push.example.com/send/abc", "keys": {"p256dh": "p", "auth": "a"}}

        first = client.put(f"/businesses/{business.id}/push-subscriptions", params=OWNER, json=sub)
        again = client.put(
            f"/businesses/{business.id}/push-subscriptions",
            params=OWNER,
            json={**sub, "keys": {"p256dh": "p2", "auth": "a2"}},
        )
        assert first.status_code == 200
        assert again.json()["id"] == first.json()["id"]

        assert client.put(f"/businesses/{business.id}/push-subscriptions", params=STRANGER, json=sub).status_code == 403

        removed = client.delete(
            f"/businesses/{business.id}/push-subscriptions",
            params={**OWNER, "endpoint": sub["endpoint"]},
        )
        assert removed.status_code == 204

    def test_vapid_key(self, client):
        assert "public_key" in client.get("/push/vapid-public-key").json()


class TestLiveDashboard:

    def test_owner_receives_insert_and_updates(self, client, business, menu):
        with client.websocket_connect(f"/businesses/{business.id}/orders/live?owner_id=owner-a") as ws:
            order_id = place(client, menu).json()["id"]
            inserted = ws.receive_json()

            advance(client, order_id, "pending")
            updated = ws.receive_json()

        assert inserted["type"] == "INSERT"
        assert inserted["order"]["id"] == order_id
        assert len(inserted["order"]["items"]) == 2
        assert updated["type"] == "UPDATE"
        assert updated["order"]["status"] == "preparing"

    def test_other_business_events_are_not_delivered(self, client, business, menu, other_business, other_menu):
        with client.websocket_connect(f"/businesses/{other_business.id}/orders/live?owner_id=owner-b") as ws:
            place(client, menu)
            client.post(
                "/businesses/by-slug/bagel-barn/orders",
                json={"customer_name": "Lee", "items": [{"product_id": other_menu["bagel"].id, "quantity": 1}]},
            )
            received = ws.receive_json()

        assert received["business_id"] == other_business.id
        assert received["order"]["customer_name"] == "Lee"

    def test_stranger_is_rejected(self, client, business):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/businesses/{business.id}/orders/live?owner_id=owner-b") as ws:
                ws.receive_json()

    def test_feed_reads_do_not_use_the_request_threadpool(self, client, business, menu, monkeypatch):
        from orderahead.api.routers import live

        limiters = []

        class RecordingThreads:
            @staticmethod
            async def run_sync(func, *args, limiter=None):
                limiters.append(limiter)
                return await anyio.to_thread.run_sync(func, *args, limiter=limiter)

        monkeypatch.setattr(live, "to_thread", RecordingThreads)

        with client.websocket_connect(f"/businesses/{business.id}/orders/live?owner_id=owner-a") as ws:
            place(client, menu)
            assert ws.receive_json()["type"] == "INSERT"

        assert limiters
        assert all(limiter is live.feed_limiter() for limiter in limiters)
        assert live.feed_limiter().total_tokens == LIVE_FEED_THREADS
