from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel


class PurchaseCategory(str, Enum):
    BOARD_REVIEW = "boardReview"
    CME = "cme"


class CheckoutResult(BaseModel):
    provider: str
    category: PurchaseCategory
    plan_type: str
    product_id: str
    quantity: int = 1
    # web checkout hands back a session the UI redirects to
    session_id: str | None = None
    url: str | None = None
    raw: dict[str, Any] | None = None


class CheckoutProvider(Protocol):
    async def initialize(self) -> Any: ...

    async def start_board_review_checkout(
        self, plan_type: str, button: Any = None
    ) -> CheckoutResult: ...

    async def start_cme_checkout(
        self, plan_type: str, button: Any = None, quantity: int = 1
    ) -> CheckoutResult: ...

    async def restore_purchases(self) -> None: ...
