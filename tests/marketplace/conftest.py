import json
import threading

import pytest
from protean.integrations.pytest import DomainFixture

CUSTOMER = "cust-001"
DESIGNER = "designer-001"
SHOP_OWNER = "owner-001"


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture()
def race(monkeypatch):
    """Process commands on parallel threads that all meet at ``owner.method_name``.

    Every thread blocks at the checkpoint until all of them have reached it,
    so they read the same state before any of them writes. Returns each
    command's result, or the exception it raised, in command order.
    """

    def _race(commands, owner, method_name):
        from marketplace.domain import marketplace
        from protean import current_domain

        barrier = threading.Barrier(len(commands), timeout=5)
        original = getattr(owner, method_name)

        def held(self, *args, **kwargs):
            barrier.wait()
            return original(self, *args, **kwargs)

        monkeypatch.setattr(owner, method_name, held)
        outcomes = ["unfinished"] * len(commands)

        def run(index, command):
            with marketplace.domain_context():
                try:
                    outcomes[index] = current_domain.process(command, asynchronous=False)
                except Exception as exc:
                    outcomes[index] = exc

        threads = [threading.Thread(target=run, args=(i, command)) for i, command in enumerate(commands)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        return outcomes

    return _race


# ---------------------------------------------------------------------------
# Seed data, created through commands
# ---------------------------------------------------------------------------
@pytest.fixture()
def shop_id():
    """An approved printing shop that supports mugs."""
    from marketplace.shop.management import ApproveShop, RegisterShop
    from protean import current_domain

    identifier = current_domain.process(
        RegisterShop(
            owner_id=SHOP_OWNER,
            name="Ink & Thread",
            offers_printing=True,
            specialties=json.dumps(["ceramic"]),
            supported_categories=json.dumps(["mugs"]),
        ),
        asynchronous=False,
    )
    current_domain.process(ApproveShop(shop_id=identifier), asynchronous=False)
    return identifier


@pytest.fixture()
def product_id(shop_id):
    """A customizable mug sold by ``shop_id`` for 120."""
    from marketplace.product.listing import ListProduct
    from protean import current_domain

    return current_domain.process(
        ListProduct(
            shop_id=shop_id,
            actor_id=SHOP_OWNER,
            name="Ceramic Mug",
            price=120.0,
            category_id="mugs",
            tags=json.dumps(["ceramic"]),
            designer_id=DESIGNER,
            is_customizable=True,
        ),
        asynchronous=False,
    )


@pytest.fixture()
def request_id(product_id):
    """A customization request the designer has accepted."""
    from marketplace.customization.creation import CreateCustomizationRequest
    from marketplace.customization.design import DesignerAcceptRequest
    from protean import current_domain

    identifier = current_domain.process(
        CreateCustomizationRequest(customer_id=CUSTOMER, product_id=product_id, customer_notes="Add a cat"),
        asynchronous=False,
    )
    current_domain.process(DesignerAcceptRequest(request_id=identifier, designer_id=DESIGNER), asynchronous=False)
    return identifier


@pytest.fixture()
def approved_request_id(request_id, shop_id):
    """A shop-priced, approved customization ready to be ordered (printing cost 30)."""
    from marketplace.customization.design import SubmitDesignForReview
    from marketplace.customization.pricing import AgreeToPricing, SetPricingAgreement, SetShopPricing
    from marketplace.customization.review import ApproveDesign
    from marketplace.customization.shop_selection import SelectShop
    from protean import current_domain

    current_domain.process(SelectShop(request_id=request_id, customer_id=CUSTOMER, shop_id=shop_id), asynchronous=False)
    current_domain.process(
        SetPricingAgreement(request_id=request_id, designer_id=DESIGNER, design_fee=200.0, payment_type="upfront"),
        asynchronous=False,
    )
    current_domain.process(
        SetShopPricing(request_id=request_id, actor_id=SHOP_OWNER, printing_cost=30.0),
        asynchronous=False,
    )
    current_domain.process(AgreeToPricing(request_id=request_id, customer_id=CUSTOMER), asynchronous=False)
    current_domain.process(
        SubmitDesignForReview(request_id=request_id, designer_id=DESIGNER, final_file="files/cat-mug.png"),
        asynchronous=False,
    )
    current_domain.process(ApproveDesign(request_id=request_id, customer_id=CUSTOMER), asynchronous=False)
    return request_id
