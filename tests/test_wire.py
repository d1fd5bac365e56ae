"""HTTP surface: status mapping, headers and the page envelope."""

import httpx
import pytest

from orderflow.errors import ErrorKind
from orderflow.wire import HTTP_STATUS, create_app
from orderflow.wire._errors import _on_workflow_error


def headers(actor):
    return {"X-Actor-Id": actor.actor_id, "X-Actor-Role": str(actor.role)}


@pytest.fixture
async def client(wf):
    transport = httpx.ASGITransport(app=create_app(wf))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def test_every_kind_has_a_status():
    assert set(HTTP_STATUS) == set(ErrorKind)


async def test_handler_reraises_foreign_errors():
    with pytest.raises(RuntimeError):
        await _on_workflow_error(None, RuntimeError("not a workflow error"))  # type: ignore[arg-type]


class TestAuthentication:
    async def test_missing_headers(self, client, cart):
        response = await client.get(f"/carts/{cart.id}")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    async def test_role_mismatch(self, client, member, cart):
        response = await client.get(
            f"/carts/{cart.id}", headers={"X-Actor-Id": member.actor_id, "X-Actor-Role": "admin"}
        )
        assert response.status_code == 401


class TestCarts:
    async def test_create_and_add(self, client, member, shop):
        created = await client.post(
            "/carts", json={"member_id": member.actor_id}, headers=headers(member)
        )
        assert created.status_code == 201
        cart_id = created.json()["id"]

        added = await client.post(
            f"/carts/{cart_id}/items",
            json={"snapshot_ref": shop.snapshot.id, "quantity": 2, "unit_price": 9900},
            headers=headers(member),
        )
        assert added.status_code == 201
        assert added.json()["status"] == "pending"

        listed = await client.get(f"/carts/{cart_id}/items", params={"limit": 1}, headers=headers(member))
        body = listed.json()
        assert listed.status_code == 200
        assert body["pagination"] == {"current": 1, "limit": 1, "records": 1, "pages": 1}
        assert body["data"][0]["quantity"] == 2

    async def test_bad_owner_is_422(self, client, member, guest):
        response = await client.post(
            "/carts",
            json={"member_id": member.actor_id, "guest_id": guest.actor_id},
            headers=headers(member),
        )
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_argument"

    async def test_foreign_cart_is_403(self, client, other_member, cart):
        response = await client.get(f"/carts/{cart.id}", headers=headers(other_member))
        assert response.status_code == 403

    async def test_unknown_cart_is_404(self, client, member):
        response = await client.get("/carts/missing", headers=headers(member))
        assert response.status_code == 404

    async def test_abandoned_cart_is_409(self, client, member, cart, shop):
        await client.post(f"/carts/{cart.id}/abandon", json={}, headers=headers(member))

        response = await client.post(
            f"/carts/{cart.id}/items",
            json={"snapshot_ref": shop.snapshot.id, "quantity": 1, "unit_price": 9900},
            headers=headers(member),
        )
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"


class TestOrders:
    async def test_checkout_then_history(self, client, member, admin, cart, shop):
        await client.post(
            f"/carts/{cart.id}/items",
            json={"snapshot_ref": shop.snapshot.id, "quantity": 1, "unit_price": 9900},
            headers=headers(member),
        )

        placed = await client.post(
            "/orders/checkout",
            json={"cart_id": cart.id, "channel_id": shop.channel.id, "code": "WEB-1"},
            headers=headers(member),
        )
        assert placed.status_code == 201
        order = placed.json()
        assert order["total_price"] == 9900

        moved = await client.post(
            f"/orders/{order['id']}/transitions",
            json={"status": "processing", "expected_version": order["version"]},
            headers=headers(admin),
        )
        assert moved.status_code == 200

        stale = await client.post(
            f"/orders/{order['id']}/transitions",
            json={"status": "completed", "expected_version": order["version"]},
            headers=headers(admin),
        )
        assert stale.status_code == 409
        assert stale.json()["error"] == "conflict"

        history = await client.get(f"/orders/{order['id']}/history", headers=headers(member))
        assert [h["new_status"] for h in history.json()["data"]] == ["processing"]

    async def test_guest_cannot_list_orders(self, client, guest):
        response = await client.get("/orders", headers=headers(guest))
        assert response.status_code == 403


class TestLedger:
    async def test_payment_lifecycle(self, client, seller, member, order):
        created = await client.post(
            f"/orders/{order.id}/payments",
            json={"payment_method": "card", "payment_amount": 9900},
            headers=headers(seller),
        )
        assert created.status_code == 201
        payment_id = created.json()["id"]

        patched = await client.patch(
            f"/orders/{order.id}/payments/{payment_id}",
            json={"payment_status": "cancelled"},
            headers=headers(seller),
        )
        assert patched.json()["cancelled_at"] is not None

        forbidden = await client.delete(f"/orders/{order.id}/payments/{payment_id}", headers=headers(member))
        assert forbidden.status_code == 403

        deleted = await client.delete(f"/orders/{order.id}/payments/{payment_id}", headers=headers(seller))
        assert deleted.status_code == 204

        again = await client.delete(f"/orders/{order.id}/payments/{payment_id}", headers=headers(seller))
        assert again.status_code == 404

    async def test_unknown_patch_field_is_rejected(self, client, seller, order):
        created = await client.post(
            f"/orders/{order.id}/deliveries",
            json={"delivery_status": "preparing", "delivery_stage": "preparation"},
            headers=headers(seller),
        )

        response = await client.patch(
            f"/orders/{order.id}/deliveries/{created.json()['id']}",
            json={"order_id": "elsewhere"},
            headers=headers(seller),
        )
        assert response.status_code == 422
