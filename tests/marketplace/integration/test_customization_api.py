"""Integration tests for the customization workflow over HTTP."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from marketplace.api import (
    customization_router,
    order_router,
    product_router,
    register_marketplace_exception_handlers,
    shop_router,
)
from marketplace.customization.request import CustomizationRequest, RequestStatus
from protean import current_domain

CUSTOMER = "cust-001"
DESIGNER = "designer-001"
SHOP_OWNER = "owner-001"


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(shop_router)
    app.include_router(product_router)
    app.include_router(customization_router)
    app.include_router(order_router)
    register_marketplace_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def listed_product(client):
    """Register and approve a printing shop over HTTP, then list a customizable mug."""
    shop_id = client.post(
        "/shops",
        json={
            "owner_id": SHOP_OWNER,
            "name": "Ink & Thread",
            "offers_printing": True,
            "specialties": ["ceramic"],
            "supported_categories": ["mugs"],
        },
    ).json()["shop_id"]
    client.put(f"/shops/{shop_id}/approve")
    product_id = client.post(
        "/products",
        json={
            "shop_id": shop_id,
            "actor_id": SHOP_OWNER,
            "name": "Ceramic Mug",
            "price": 120.0,
            "category_id": "mugs",
            "tags": ["ceramic"],
            "designer_id": DESIGNER,
            "is_customizable": True,
        },
    ).json()["product_id"]
    return shop_id, product_id


def _create_request(client, product_id):
    response = client.post(
        "/customizations",
        json={"customer_id": CUSTOMER, "product_id": product_id, "customer_notes": "Add a cat"},
    )
    assert response.status_code == 201
    return response.json()["request_id"]


class TestCustomizationFlow:
    def test_request_to_order(self, client, listed_product):
        shop_id, product_id = listed_product
        request_id = _create_request(client, product_id)

        assert client.put(f"/customizations/{request_id}/accept", json={"designer_id": DESIGNER}).status_code == 200

        shops = client.get(f"/customizations/{request_id}/shops").json()
        assert [shop["shop_id"] for shop in shops["product_owner"]] == [shop_id]

        client.put(f"/customizations/{request_id}/shop", json={"customer_id": CUSTOMER, "shop_id": shop_id})
        client.put(
            f"/customizations/{request_id}/pricing",
            json={"designer_id": DESIGNER, "design_fee": 200.0, "payment_type": "upfront"},
        )
        client.put(
            f"/customizations/{request_id}/shop-pricing",
            json={"actor_id": SHOP_OWNER, "printing_cost": 30.0},
        )
        client.put(f"/customizations/{request_id}/pricing/agree", json={"customer_id": CUSTOMER})
        client.put(
            f"/customizations/{request_id}/submit",
            json={"designer_id": DESIGNER, "final_file": "files/cat-mug.png"},
        )
        response = client.put(f"/customizations/{request_id}/approve", json={"customer_id": CUSTOMER})
        assert response.status_code == 200

        response = client.post("/orders/customization", json={"request_id": request_id, "customer_id": CUSTOMER})
        assert response.status_code == 201

        request = current_domain.repository_for(CustomizationRequest).get(request_id)
        assert request.status == RequestStatus.APPROVED.value
        assert request.order_id == response.json()["order_id"]

    def test_only_assigned_designer_submits(self, client, listed_product):
        _, product_id = listed_product
        request_id = _create_request(client, product_id)
        client.put(f"/customizations/{request_id}/accept", json={"designer_id": DESIGNER})

        response = client.put(
            f"/customizations/{request_id}/submit",
            json={"designer_id": "designer-999", "final_file": "files/other.png"},
        )

        assert response.status_code == 403

    def test_approve_before_submission_conflicts(self, client, listed_product):
        _, product_id = listed_product
        request_id = _create_request(client, product_id)

        response = client.put(f"/customizations/{request_id}/approve", json={"customer_id": CUSTOMER})

        assert response.status_code == 409
        assert response.json()["current_status"] == "pending_designer_review"

    def test_revision_needs_a_reason(self, client, listed_product):
        _, product_id = listed_product
        request_id = _create_request(client, product_id)

        response = client.put(f"/customizations/{request_id}/revision", json={"customer_id": CUSTOMER, "reason": ""})

        assert response.status_code == 422

    def test_cancel(self, client, listed_product):
        _, product_id = listed_product
        request_id = _create_request(client, product_id)

        response = client.put(f"/customizations/{request_id}/cancel", json={"customer_id": CUSTOMER})

        assert response.status_code == 200
        request = current_domain.repository_for(CustomizationRequest).get(request_id)
        assert request.status == RequestStatus.CANCELLED.value


class TestShopMatching:
    def test_no_eligible_shop_is_not_found(self, client, listed_product):
        shop_id, product_id = listed_product
        request_id = _create_request(client, product_id)
        client.put(f"/shops/{shop_id}", json={"actor_id": SHOP_OWNER, "offers_printing": False})

        response = client.get(f"/customizations/{request_id}/shops")

        assert response.status_code == 404

    def test_unknown_request(self, client):
        assert client.get("/customizations/no-such-request/shops").status_code == 404


class TestPricingValidation:
    def test_milestones_must_add_up(self, client, listed_product):
        _, product_id = listed_product
        request_id = _create_request(client, product_id)
        client.put(f"/customizations/{request_id}/accept", json={"designer_id": DESIGNER})

        response = client.put(
            f"/customizations/{request_id}/pricing",
            json={
                "designer_id": DESIGNER,
                "design_fee": 300.0,
                "payment_type": "milestone",
                "milestones": [{"description": "Sketch", "amount": 100.0}],
            },
        )

        assert response.status_code == 400


class TestDesignerWorkload:
    def test_workload(self, client, listed_product):
        _, product_id = listed_product
        accepted = _create_request(client, product_id)
        _create_request(client, product_id)
        client.put(f"/customizations/{accepted}/accept", json={"designer_id": DESIGNER})

        body = client.get(f"/customizations/designers/{DESIGNER}/workload").json()

        assert body["designer_id"] == DESIGNER
        assert body["by_status"] == {"in_progress": 1}
