"""Static product catalogs for the native and web checkout backends."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Generic, TypeVar

from .base import PurchaseCategory
from .errors import UnknownProduct

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class WebPrice:
    price_id: str
    plan_name: str
    tier: str
    unit_amount: float


class ProductCatalog(Generic[T]):
    """Immutable (category, plan) lookup. A miss raises UnknownProduct."""

    def __init__(self, entries: Mapping[PurchaseCategory, Mapping[str, T]]) -> None:
        self._entries = MappingProxyType(
            {category: MappingProxyType(dict(plans)) for category, plans in entries.items()}
        )

    def resolve(self, category: PurchaseCategory, plan_type: str) -> T:
        entry = self._entries.get(category, {}).get(plan_type)
        if entry is None:
            raise UnknownProduct(category.value, plan_type)
        return entry

    def plans(self, category: PurchaseCategory) -> tuple[str, ...]:
        return tuple(self._entries.get(category, {}))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        category, plan_type = key
        return plan_type in self._entries.get(category, {})


NATIVE_PRODUCTS: ProductCatalog[str] = ProductCatalog(
    {
        PurchaseCategory.BOARD_REVIEW: {
            "monthly": "medswipe.board.review.monthly",
            "3-month": "medswipe.board.review.quarterly",
            "annual": "medswipe.board.review.annual",
        },
        PurchaseCategory.CME: {
            "annual": "medswipe.cme.annual",
            "credits": "medswipe.cme.credits",
        },
    }
)

WEB_PRICES: ProductCatalog[WebPrice] = ProductCatalog(
    {
        PurchaseCategory.BOARD_REVIEW: {
            "monthly": WebPrice(
                "price_1RXcRSJDkW3cIYXuS6n0pM0t", "Board Review Monthly", "board_review", 15.00
            ),
            "3-month": WebPrice(
                "price_1RXcPbJDkW3cIYXusuhRQzqx", "Board Review 3-Month", "board_review", 40.00
            ),
            "annual": WebPrice(
                "price_1RXcOnJDkW3cIYXusyl4eKpH", "Board Review Annual", "board_review", 149.00
            ),
        },
        PurchaseCategory.CME: {
            "annual": WebPrice(
                "price_1RXcMOJDkW3cIYXuu4xEKrm4", "CME Annual Subscription", "cme_annual", 179.00
            ),
            # priced per credit
            "credits": WebPrice(
                "price_1RXcdsJDkW3cIYXuKTLAM472", "CME Credits Purchase", "cme_credits", 8.00
            ),
        },
    }
)


__all__ = ["NATIVE_PRODUCTS", "WEB_PRICES", "ProductCatalog", "WebPrice"]
