"""Integration tests for Discount API endpoints via TestClient."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from marketplace.api import discount_router, register_marketplace_exception_handlers
from marketplace.promotion.discount import Discount
from protean import current_domain

OWNER = "owner-001"


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(discount_router)
    register_marketplace_exception_handlers(app)
    return TestClient(app)


def _create(client, **overrides):
    now = datetime.now(UTC)
    payload = {
        "name": "Ten percent",
        "discount_type": "percentage",
        "value": 10.0,
        "start_date": (now - timedelta(days=1)).isoformat(),
        "end_date": (now + timedelta(days=7)).isoformat(),
        "business_owner_id": OWNER,
    }
    payload.update(overrides)
    response = client.post("/discounts", json=payload)
    assert response.status_code == 201
    return response.json()["discount_id"]


class TestCreateDiscount:
    def test_create(self, client):
        discount_id = _create(client, max_discount_amount=15.0)
        discount = current_domain.repository_for(Discount).get(discount_id)
        assert discount.max_discount_amount == 15.0
        assert discount.status == "active"

    def test_percentage_above_hundred(self, client):
        now = datetime.now(UTC)
        response = client.post(
            "/discounts",
            json={
                "name": "Too generous",
                "discount_type": "percentage",
                "value": 150.0,
                "start_date": now.isoformat(),
                "end_date": (now + timedelta(days=1)).isoformat(),
                "business_owner_id": OWNER,
            },
        )
        assert response.status_code == 400


class TestValidateAndApply:
    def test_validate_does_not_consume(self, client):
        discount_id = _create(client, usage_limit=1)

        body = client.post(f"/discounts/{discount_id}/validate", json={"order_amount": 100.0}).json()

        assert body == {"valid": True, "code": None, "reason": None}
        assert current_domain.repository_for(Discount).get(discount_id).used_count == 0

    def test_validate_reports_rejection_code(self, client):
        discount_id = _create(client, min_order_amount=500.0)

        body = client.post(f"/discounts/{discount_id}/validate", json={"order_amount": 100.0}).json()

        assert body["valid"] is False
        assert body["code"] == "below_minimum"

    def test_apply(self, client):
        discount_id = _create(client, discount_type="fixed_amount", value=25.0)

        response = client.post(f"/discounts/{discount_id}/apply", json={"order_amount": 100.0, "order_id": "ord-1"})

        assert response.status_code == 200
        assert response.json() == {"discount_amount": 25.0}

    def test_apply_exhausted_conflicts(self, client):
        discount_id = _create(client, usage_limit=1)
        client.post(f"/discounts/{discount_id}/apply", json={"order_amount": 100.0})

        response = client.post(f"/discounts/{discount_id}/apply", json={"order_amount": 100.0})

        assert response.status_code == 409

    def test_unknown_discount(self, client):
        response = client.post("/discounts/no-such-discount/validate", json={"order_amount": 100.0})
        assert response.status_code == 404


class TestApplicableDiscounts:
    def test_best_first(self, client):
        small = _create(client, name="Five off", discount_type="fixed_amount", value=5.0)
        big = _create(client, name="Quarter off", value=25.0)

        response = client.get("/discounts/applicable", params={"order_amount": 100.0, "business_owner_id": OWNER})

        assert response.status_code == 200
        ids = [d["discount_id"] for d in response.json()["discounts"]]
        assert ids == [big, small]

    def test_negative_amount_rejected(self, client):
        assert client.get("/discounts/applicable", params={"order_amount": -1}).status_code == 422


class TestManageDiscount:
    def test_update(self, client):
        discount_id = _create(client)

        response = client.put(f"/discounts/{discount_id}", json={"actor_id": OWNER, "value": 20.0})

        assert response.status_code == 200
        assert current_domain.repository_for(Discount).get(discount_id).value == 20.0

    def test_update_by_other_business_forbidden(self, client):
        discount_id = _create(client)
        response = client.put(f"/discounts/{discount_id}", json={"actor_id": "owner-999", "value": 20.0})
        assert response.status_code == 403

    def test_deactivate(self, client):
        discount_id = _create(client)

        response = client.put(f"/discounts/{discount_id}/deactivate", json={"actor_id": OWNER})

        assert response.status_code == 200
        body = client.post(f"/discounts/{discount_id}/validate", json={"order_amount": 100.0}).json()
        assert body["code"] == "inactive"

    def test_deactivate_twice_conflicts(self, client):
        discount_id = _create(client)
        client.put(f"/discounts/{discount_id}/deactivate", json={"actor_id": OWNER})

        response = client.put(f"/discounts/{discount_id}/deactivate", json={"actor_id": OWNER})

        assert response.status_code == 409
