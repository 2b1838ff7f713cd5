"""Marketplace load test scenarios.

Stateful SequentialTaskSet journeys. Every step depends on the previous
one, so a failed step interrupts the journey.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    actor_id,
    order_data,
    pricing_data,
    product_data,
    shop_data,
    tracking_number,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CustomizationState, OrderState, StorefrontState


class _StorefrontJourney(SequentialTaskSet):
    """Opens an approved printing shop with one customizable product."""

    def on_start(self):
        self.storefront = StorefrontState(owner_id=actor_id("owner"))

    def _expect(self, resp, status_code: int, step: str) -> bool:
        if resp.status_code == status_code:
            return True
        resp.failure(f"{step} failed: {resp.status_code} {extract_error_detail(resp)}")
        self.interrupt()
        return False

    @task
    def register_shop(self):
        with self.client.post(
            "/shops",
            json=shop_data(self.storefront.owner_id),
            catch_response=True,
            name="POST /shops",
        ) as resp:
            if self._expect(resp, 201, "Register shop"):
                self.storefront.shop_id = resp.json()["shop_id"]

    @task
    def approve_shop(self):
        with self.client.put(
            f"/shops/{self.storefront.shop_id}/approve",
            catch_response=True,
            name="PUT /shops/{id}/approve",
        ) as resp:
            self._expect(resp, 200, "Approve shop")

    @task
    def list_product(self):
        with self.client.post(
            "/products",
            json=product_data(self.storefront.shop_id, self.storefront.owner_id),
            catch_response=True,
            name="POST /products",
        ) as resp:
            if self._expect(resp, 201, "List product"):
                self.storefront.product_id = resp.json()["product_id"]


class OrderFulfilmentJourney(_StorefrontJourney):
    """Place -> Accept -> Ready -> Ship -> Deliver a stock order."""

    def on_start(self):
        super().on_start()
        self.order = OrderState(customer_id=actor_id("cust"))

    @task
    def place_order(self):
        payload = order_data(self.order.customer_id, self.storefront.shop_id, self.storefront.product_id)
        with self.client.post("/orders", json=payload, catch_response=True, name="POST /orders") as resp:
            if self._expect(resp, 201, "Place order"):
                self.order.order_id = resp.json()["order_id"]

    @task
    def accept(self):
        self._advance("accept", {"actor_id": self.storefront.owner_id}, "processing")

    @task
    def ready_to_ship(self):
        self._advance("ready-to-ship", {"actor_id": self.storefront.owner_id}, "to_ship")

    @task
    def ship(self):
        body = {"actor_id": self.storefront.owner_id, "tracking_number": tracking_number(), "carrier": "UPS"}
        self._advance("ship", body, "shipped")

    @task
    def deliver(self):
        self._advance("deliver", {"actor_id": self.order.customer_id}, "delivered")

    @task
    def read_back(self):
        with self.client.get(
            f"/orders/{self.order.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if self._expect(resp, 200, "Read order") and resp.json()["status"] != self.order.current_status:
                resp.failure(f"Order summary lags: {resp.json()['status']} != {self.order.current_status}")

    @task
    def done(self):
        self.interrupt()

    def _advance(self, action: str, body: dict, next_status: str) -> None:
        with self.client.put(
            f"/orders/{self.order.order_id}/{action}",
            json=body,
            catch_response=True,
            name=f"PUT /orders/{{id}}/{action}",
        ) as resp:
            if self._expect(resp, 200, f"Order {action}"):
                self.order.current_status = next_status


class CustomizationJourney(_StorefrontJourney):
    """Request -> Designer accepts -> Pricing -> Shop selected and priced ->
    Design submitted -> Approved -> Ordered -> Shipped (escrow released)."""

    def on_start(self):
        super().on_start()
        self.customization = CustomizationState(customer_id=actor_id("cust"), designer_id=actor_id("designer"))

    def _put(self, path: str, body: dict, step: str) -> None:
        with self.client.put(
            f"/customizations/{self.customization.request_id}/{path}",
            json=body,
            catch_response=True,
            name=f"PUT /customizations/{{id}}/{path}",
        ) as resp:
            self._expect(resp, 200, step)

    @task
    def create_request(self):
        payload = {
            "customer_id": self.customization.customer_id,
            "product_id": self.storefront.product_id,
            "customer_notes": "Add our team logo on the front",
        }
        with self.client.post("/customizations", json=payload, catch_response=True, name="POST /customizations") as resp:
            if self._expect(resp, 201, "Create customization"):
                self.customization.request_id = resp.json()["request_id"]

    @task
    def designer_accepts(self):
        self._put("accept", {"designer_id": self.customization.designer_id}, "Designer accept")

    @task
    def set_pricing(self):
        self._put("pricing", pricing_data(self.customization.designer_id), "Set pricing")

    @task
    def browse_shops(self):
        with self.client.get(
            f"/customizations/{self.customization.request_id}/shops",
            catch_response=True,
            name="GET /customizations/{id}/shops",
        ) as resp:
            self._expect(resp, 200, "List eligible shops")

    @task
    def select_shop(self):
        body = {"customer_id": self.customization.customer_id, "shop_id": self.storefront.shop_id}
        self._put("shop", body, "Select shop")

    @task
    def shop_prices_printing(self):
        self._put("shop-pricing", {"actor_id": self.storefront.owner_id, "printing_cost": 12.5}, "Shop pricing")

    @task
    def submit_design(self):
        body = {"designer_id": self.customization.designer_id, "final_file": "designs/final.png"}
        self._put("submit", body, "Submit design")

    @task
    def approve_design(self):
        self._put("approve", {"customer_id": self.customization.customer_id}, "Approve design")

    @task
    def order_and_ship(self):
        payload = {"request_id": self.customization.request_id, "customer_id": self.customization.customer_id}
        with self.client.post(
            "/orders/customization",
            json=payload,
            catch_response=True,
            name="POST /orders/customization",
        ) as resp:
            if not self._expect(resp, 201, "Place customization order"):
                return
            order_id = resp.json()["order_id"]

        owner = {"actor_id": self.storefront.owner_id}
        for action, body in (
            ("accept", owner),
            ("ready-to-ship", owner),
            ("ship", {**owner, "tracking_number": tracking_number()}),
        ):
            with self.client.put(
                f"/orders/{order_id}/{action}",
                json=body,
                catch_response=True,
                name=f"PUT /orders/{{id}}/{action}",
            ) as resp:
                if not self._expect(resp, 200, f"Customization order {action}"):
                    return

    @task
    def done(self):
        self.interrupt()


class MarketplaceUser(HttpUser):
    """Mostly stock orders, with a steady share of customization work."""

    wait_time = between(1, 3)
    tasks = {OrderFulfilmentJourney: 3, CustomizationJourney: 1}
