"""End-to-end tests through the HTTP API"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from cantina import database
from cantina.config import settings


def order_payload(customer_id, payment_method="pay_later", total="11.00"):
    return {
        "customer_id": customer_id,
        "items": [
            {
                "product_id": 1,
                "product_name": "Pastel",
                "unit_price": total,
                "quantity": 1,
                "flavor": "Queijo",
            },
        ],
        "total_amount": total,
        "payment_method": payment_method,
    }


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestAuth:
    @pytest.mark.asyncio
    async def test_setup_first_admin_only_once(self, client: AsyncClient):
        body = {"full_name": "Salete", "email": "owner@example.com", "password": "secret"}

        response = await client.post("/auth/setup", json=body)
        assert response.status_code == 201
        token = response.json()["access_token"]

        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "owner@example.com"
        assert me.json()["role"] == "admin"

        again = await client.post("/auth/setup", json={**body, "email": "other@example.com"})
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_login(self, client: AsyncClient, admin_user):
        response = await client.post(
            "/auth/login",
            data={"username": "admin@example.com", "password": "adminpass123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.access_token_expire_minutes * 60

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, admin_user):
        response = await client.post(
            "/auth/login",
            data={"username": "admin@example.com", "password": "wrong"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_routes_require_token(self, client: AsyncClient):
        assert (await client.get("/orders")).status_code == 401
        assert (await client.get("/debts")).status_code == 401

        client.headers["Authorization"] = "Bearer not-a-token"
        assert (await client.get("/orders")).status_code == 401


@pytest.mark.asyncio
async def test_identify_normalizes_phone(client: AsyncClient):
    first = await client.post("/customers/identify", json={"name": "Ana", "phone": "(11) 99999-0000"})
    second = await client.post("/customers/identify", json={"name": "Ana", "phone": "11999990000"})

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert first.json()["phone"] == "11999990000"
    assert first.json()["total_debt"] == "0.00"


@pytest.mark.asyncio
async def test_identify_rejects_bad_input(client: AsyncClient):
    response = await client.post("/customers/identify", json={"name": "A", "phone": "11999990000"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_pay_later_flow(admin_client: AsyncClient, test_customer):
    customer_id = str(test_customer.id)

    created = await admin_client.post("/orders", json=order_payload(customer_id))
    assert created.status_code == 201
    order_id = created.json()["order_id"]
    assert created.json()["order_number"] == 1

    customer = (await admin_client.get(f"/customers/{customer_id}")).json()
    assert customer["total_debt"] == "11.00"

    debts = (await admin_client.get("/debts")).json()
    assert len(debts) == 1
    assert debts[0]["amount"] == "11.00"
    assert debts[0]["customer"]["id"] == customer_id
    assert debts[0]["order"]["id"] == order_id

    paid = await admin_client.post(f"/debts/{debts[0]['id']}/pay")
    assert paid.status_code == 200
    assert paid.json()["is_paid"] is True

    again = await admin_client.post(f"/debts/{debts[0]['id']}/pay")
    assert again.status_code == 200

    order = (await admin_client.get(f"/orders/{order_id}")).json()
    assert order["payment_status"] == "paid"
    assert order["items"][0]["subtotal"] == "11.00"

    customer = (await admin_client.get(f"/customers/{customer_id}")).json()
    assert customer["total_debt"] == "0.00"
    assert customer["total_spent"] == "11.00"

    assert (await admin_client.get("/debts")).json() == []
    customer_debts = (await admin_client.get(f"/customers/{customer_id}/debts")).json()
    assert customer_debts[0]["is_paid"] is True

    history = (await admin_client.get(f"/customers/{customer_id}/orders")).json()
    assert [entry["id"] for entry in history] == [order_id]


@pytest.mark.asyncio
async def test_order_status_and_cancel(admin_client: AsyncClient, test_customer):
    created = await admin_client.post("/orders", json=order_payload(str(test_customer.id)))
    order_id = created.json()["order_id"]

    ready = await admin_client.patch(f"/orders/{order_id}/status", json={"status": "ready"})
    assert ready.status_code == 200
    assert ready.json()["order_status"] == "ready"

    back = await admin_client.patch(f"/orders/{order_id}/status", json={"status": "preparing"})
    assert back.status_code == 409

    cancelled = await admin_client.post(f"/orders/{order_id}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["order_status"] == "cancelled"
    assert cancelled.json()["payment_status"] == "cancelled"
    assert cancelled.json()["customer"]["total_debt"] == "0.00"

    payment = await admin_client.patch(f"/orders/{order_id}/payment-status", json={"status": "paid"})
    assert payment.status_code == 409


@pytest.mark.asyncio
async def test_list_orders(admin_client: AsyncClient, test_customer):
    for payment_method in ("cash", "pix"):
        await admin_client.post("/orders", json=order_payload(str(test_customer.id), payment_method))

    response = await admin_client.get("/orders", params={"page_size": 1})
    data = response.json()

    assert response.status_code == 200
    assert data["total"] == 2
    assert len(data["items"]) == 1
    assert data["items"][0]["payment_method"] == "pix"


@pytest.mark.asyncio
async def test_recalculate_debt(admin_client: AsyncClient, test_db, test_customer):
    await admin_client.post("/orders", json=order_payload(str(test_customer.id)))
    await test_db.refresh(test_customer)
    test_customer.total_debt = 50
    await test_db.commit()

    response = await admin_client.post(f"/customers/{test_customer.id}/recalculate-debt")

    assert response.status_code == 200
    assert response.json()["previous_total_debt"] == "50.00"
    assert response.json()["total_debt"] == "11.00"


class TestErrors:
    @pytest.mark.asyncio
    async def test_not_found(self, admin_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "pix_key", "cantina@example.com")
        missing = uuid4()

        for method, url in [
            ("get", f"/orders/{missing}"),
            ("post", f"/orders/{missing}/cancel"),
            ("post", f"/debts/{missing}/pay"),
            ("get", f"/customers/{missing}"),
            ("post", f"/customers/{missing}/recalculate-debt"),
            ("get", f"/pix/orders/{missing}"),
        ]:
            response = await admin_client.request(method, url)
            assert response.status_code == 404, url

        response = await admin_client.get(f"/orders/{missing}")
        assert response.json() == {"detail": "Order not found"}

    @pytest.mark.asyncio
    async def test_unknown_customer_order(self, client: AsyncClient):
        response = await client.post("/orders", json=order_payload(str(uuid4())))

        assert response.status_code == 404
        assert response.json() == {"detail": "Customer not found"}

    @pytest.mark.asyncio
    async def test_invalid_order_body(self, client: AsyncClient, test_customer):
        body = order_payload(str(test_customer.id))
        body["items"] = []
        assert (await client.post("/orders", json=body)).status_code == 422

        body = order_payload(str(test_customer.id), total="abc")
        assert (await client.post("/orders", json=body)).status_code == 422

        body = order_payload(str(test_customer.id), payment_method="bitcoin")
        assert (await client.post("/orders", json=body)).status_code == 422

        for missing_total in (None, "", "  "):
            body = order_payload(str(test_customer.id))
            body["total_amount"] = missing_total
            assert (await client.post("/orders", json=body)).status_code == 422, missing_total

        body = order_payload(str(test_customer.id))
        body["items"][0]["unit_price"] = None
        assert (await client.post("/orders", json=body)).status_code == 422

    @pytest.mark.asyncio
    async def test_readiness_reports_store_failure_without_details(self, client: AsyncClient, monkeypatch):
        def unavailable():
            raise OSError("password authentication failed for user cantina")

        monkeypatch.setattr(database, "SessionLocal", unavailable)

        response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] == "failed"
        assert "password" not in response.text


class TestPixEndpoint:
    @pytest.mark.asyncio
    async def test_charge_for_order(self, client: AsyncClient, test_customer, monkeypatch):
        monkeypatch.setattr(settings, "pix_key", "cantina@example.com")
        created = await client.post("/orders", json=order_payload(str(test_customer.id), "pix", "18.00"))
        order_id = created.json()["order_id"]

        response = await client.get(f"/pix/orders/{order_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["order_id"] == order_id
        assert data["order_number"] == 1
        assert "540518.00" in data["payload"]
        assert "cantina@example.com" in data["payload"]

    @pytest.mark.asyncio
    async def test_missing_key_is_a_server_error(self, client: AsyncClient, test_customer, monkeypatch):
        monkeypatch.setattr(settings, "pix_key", "")
        created = await client.post("/orders", json=order_payload(str(test_customer.id), "pix"))

        response = await client.get(f"/pix/orders/{created.json()['order_id']}")

        assert response.status_code == 500
        assert "not configured" in response.json()["detail"]
