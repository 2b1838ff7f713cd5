"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the API's Pydantic request schemas and
pass the domain's validation rules.
"""

import random
import uuid

from faker import Faker

fake = Faker()

CATEGORIES = ["apparel", "mugs", "posters", "stickers", "tote-bags"]
SPECIALTIES = ["screen printing", "embroidery", "dtg", "sublimation", "vinyl"]


def actor_id(prefix: str) -> str:
    return f"{prefix}-lt-{uuid.uuid4().hex[:8]}"


def shop_data(owner_id: str) -> dict:
    return {
        "owner_id": owner_id,
        "name": f"{fake.company()} Prints"[:200],
        "offers_printing": True,
        "specialties": random.sample(SPECIALTIES, k=2),
        "supported_categories": random.sample(CATEGORIES, k=2),
    }


def product_data(shop_id: str, owner_id: str, customizable: bool = True) -> dict:
    return {
        "shop_id": shop_id,
        "actor_id": owner_id,
        "name": f"{fake.color_name()} {random.choice(['Tee', 'Hoodie', 'Mug', 'Poster'])}",
        "price": round(random.uniform(10, 80), 2),
        "category_id": random.choice(CATEGORIES),
        "tags": [fake.word() for _ in range(3)],
        "is_customizable": customizable,
    }


def order_data(customer_id: str, shop_id: str, product_id: str) -> dict:
    return {
        "customer_id": customer_id,
        "shop_id": shop_id,
        "items": [{"product_id": product_id, "quantity": random.randint(1, 3)}],
        "shipping_cost": round(random.uniform(0, 15), 2),
    }


def pricing_data(designer_id: str) -> dict:
    fee = float(random.randint(5, 30) * 10)
    return {
        "designer_id": designer_id,
        "design_fee": fee,
        "payment_type": "milestone",
        "milestones": [
            {"description": "Deposit", "amount": fee / 2},
            {"description": "Final artwork", "amount": fee / 2},
        ],
    }


def tracking_number() -> str:
    return f"LT{uuid.uuid4().hex[:12].upper()}"
