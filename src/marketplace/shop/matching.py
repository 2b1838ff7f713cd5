"""Shop matching — which shops may fulfil a customized product, best first.

Candidates fall into three disjoint buckets, in priority order:

1. the shop that owns the product;
2. the shop(s) run by the designer working on the request;
3. every other shop whose supported categories contain the product's
   category, or whose specialties match a product tag or the product name,
   ordered by average rating then completed orders (both descending).

Only active, approved shops that offer printing are considered, and a shop
lands in the first bucket it qualifies for. An empty result is a real
outcome: callers report that no shop is eligible instead of picking one.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from marketplace.shop.shop import Shop


@dataclass(frozen=True)
class ShopMatches:
    product_owner: list = field(default_factory=list)
    designer: list = field(default_factory=list)
    others: list = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.product_owner or self.designer or self.others)

    def ranked(self) -> list:
        """All candidates flattened in recommendation order."""
        return [*self.product_owner, *self.designer, *self.others]


def _specialty_matches(specialty: str, term: str) -> bool:
    specialty, term = specialty.strip().lower(), term.strip().lower()
    if not specialty or not term:
        return False
    return specialty in term or term in specialty


def matches_product(shop, product) -> bool:
    """Does the shop's declared profile cover this product?"""
    if product.category_id and product.category_id in shop.category_list:
        return True
    terms = [*product.tag_list, product.name or ""]
    return any(_specialty_matches(specialty, term) for specialty in shop.specialty_list for term in terms)


def match_shops(product, shops: Iterable, designer_id: str | None = None) -> ShopMatches:
    """Split ``shops`` into the three recommendation buckets for ``product``."""
    eligible = [shop for shop in shops if shop.is_eligible]
    placed: set[str] = set()

    product_owner = [shop for shop in eligible if str(shop.id) == str(product.shop_id)]
    placed.update(str(shop.id) for shop in product_owner)

    designer = []
    if designer_id:
        designer = [shop for shop in eligible if shop.owner_id == designer_id and str(shop.id) not in placed]
        placed.update(str(shop.id) for shop in designer)

    others = [shop for shop in eligible if str(shop.id) not in placed and matches_product(shop, product)]
    others.sort(key=lambda shop: (-(shop.average_rating or 0.0), -(shop.completed_orders or 0)))

    return ShopMatches(product_owner=product_owner, designer=designer, others=others)


def find_matching_shops(product, designer_id: str | None = None) -> ShopMatches:
    """Load candidate shops and match them against ``product``."""
    candidates = current_domain.repository_for(Shop).find_candidates()
    return match_shops(product, candidates, designer_id=designer_id)
