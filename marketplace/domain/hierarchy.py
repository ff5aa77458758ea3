"""B2B seller hierarchy rules.

Importateur (tier 1) sells to grossiste and fournisseur, grossiste (tier 2)
buys from importateur and sells to fournisseur, fournisseur (tier 3) only
buys. An offer's target category is the tier it is sold to, so a seller's
marketplace shows the offers targeted at their own category.
"""
from typing import Dict, List, Optional

from marketplace.domain.models import SellerCategory

ALLOWED_TARGETS: Dict[SellerCategory, List[SellerCategory]] = {
    SellerCategory.IMPORTATEUR: [SellerCategory.GROSSISTE, SellerCategory.FOURNISSEUR],
    SellerCategory.GROSSISTE: [SellerCategory.FOURNISSEUR],
    SellerCategory.FOURNISSEUR: [],
}

# Tier directly below, used when an offer does not name its target
DEFAULT_TARGET: Dict[SellerCategory, SellerCategory] = {
    SellerCategory.IMPORTATEUR: SellerCategory.GROSSISTE,
    SellerCategory.GROSSISTE: SellerCategory.FOURNISSEUR,
}


def visible_categories(seller_category: SellerCategory) -> List[SellerCategory]:
    # Importateurs only sell
    if seller_category == SellerCategory.IMPORTATEUR:
        return []
    return [seller_category]


def can_see_target(seller_category: SellerCategory, target: SellerCategory) -> bool:
    return target in visible_categories(seller_category)


def can_target(seller_category: SellerCategory, target: SellerCategory) -> bool:
    return target in ALLOWED_TARGETS.get(seller_category, [])


def default_target(seller_category: SellerCategory) -> Optional[SellerCategory]:
    return DEFAULT_TARGET.get(seller_category)


def can_respond(buyer_category: Optional[SellerCategory], target: SellerCategory) -> bool:
    return buyer_category is not None and buyer_category == target
