import pytest
from httpx import ASGITransport, AsyncClient

from app.core.db import get_db
from app.core.security import create_access_token
from main import app

from conftest import OTHER_TENANT_ID, TENANT_ID


def auth_headers(tenant_id=TENANT_ID, user_id=7):
    token = create_access_token(user_id=user_id, tenant_id=tenant_id, username="ops@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def post_movement(client, body, headers=None):
    return await client.post("/stock-movements/", json=body, headers=headers or auth_headers())


class TestCreateMovement:
    async def test_receipt_returns_201(self, client, catalog):
        response = await post_movement(
            client,
            {"type": "IN", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": "100"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Stock movement recorded"
        assert body["data"]["movement"]["type"] == "IN"
        assert body["data"]["movement"]["number"].startswith("SM")
        assert body["data"]["movement"]["created_by_id"] == 7
        assert body["data"]["to_balance"]["quantity"] == "100.000000"
        assert body["data"]["from_balance"] is None

    async def test_validation_error_is_400(self, client, catalog):
        response = await post_movement(
            client,
            {"type": "OUT", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": "1"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "MOVEMENT_LOCATION_REQUIRED"
        assert body["details"] == {"field": "from_location_id"}

    @pytest.mark.parametrize("quantity", ["1e25", "2.0000005"])
    async def test_unstorable_quantity_is_400(self, client, catalog, quantity):
        response = await post_movement(
            client,
            {"type": "IN", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": quantity},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "MOVEMENT_INVALID_QUANTITY"
        assert body["details"] == {"field": "quantity"}

    async def test_malformed_body_is_422(self, client, catalog):
        response = await post_movement(
            client,
            {"type": "GIFT", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": "1"},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_unknown_supply_is_404(self, client, catalog):
        response = await post_movement(
            client,
            {"type": "IN", "supply_id": catalog.foreign_supply_id, "to_location_id": catalog.a, "quantity": "1"},
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "SUPPLY_NOT_FOUND"

    async def test_insufficient_stock_is_409(self, client, catalog):
        await post_movement(
            client,
            {"type": "IN", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": "70"},
        )

        response = await post_movement(
            client,
            {"type": "OUT", "supply_id": catalog.supply_id, "from_location_id": catalog.a, "quantity": "80"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert body["details"]["available"] == "70.000000"
        assert body["details"]["requested"] == "80.000000"


class TestAuthentication:
    async def test_missing_token_is_401(self, client, catalog):
        response = await client.post(
            "/stock-movements/",
            json={"type": "IN", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": "1"},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    async def test_garbage_token_is_401(self, client, catalog):
        response = await client.get("/stock-movements/", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    async def test_other_tenant_cannot_read(self, client, catalog):
        created = await post_movement(
            client,
            {"type": "IN", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": "1"},
        )
        movement_id = created.json()["data"]["movement"]["id"]

        response = await client.get(
            f"/stock-movements/{movement_id}", headers=auth_headers(tenant_id=OTHER_TENANT_ID)
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "MOVEMENT_NOT_FOUND"


class TestReadEndpoints:
    async def test_get_movement(self, client, catalog):
        created = await post_movement(
            client,
            {
                "type": "IN",
                "supply_id": catalog.supply_id,
                "to_location_id": catalog.a,
                "quantity": "5",
                "reference_type": "PO",
                "reference_id": "PO-42",
                "note": "dock 3",
            },
        )
        movement_id = created.json()["data"]["movement"]["id"]

        response = await client.get(f"/stock-movements/{movement_id}", headers=auth_headers())

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["reference_type"] == "PO"
        assert data["reference_id"] == "PO-42"
        assert data["note"] == "dock 3"

    async def test_list_movements(self, client, catalog):
        for quantity in ("1", "2", "3"):
            await post_movement(
                client,
                {"type": "IN", "supply_id": catalog.supply_id, "to_location_id": catalog.a, "quantity": quantity},
            )

        response = await client.get(
            "/stock-movements/", params={"type": "IN", "page_size": 2}, headers=auth_headers()
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert len(body["data"]) == 2

    async def test_list_balances(self, client, catalog):
        await post_movement(
            client,
            {
                "type": "IN",
                "supply_id": catalog.supply_id,
                "to_location_id": catalog.b,
                "presentation_id": catalog.box_id,
                "presentation_quantity": "3",
            },
        )

        response = await client.get(
            "/inventory-balances/", params={"location_id": catalog.b}, headers=auth_headers()
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        item = data["items"][0]
        assert item["location_code"] == "wh-b"
        assert item["supply_name"] == "Nitrile gloves"
        assert item["quantity"] == "36.000000"


class TestHealth:
    async def test_health_check(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"] == "ok"
