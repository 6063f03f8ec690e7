"""Stripe checkout provider for the web build.

Checkout sessions are created by the ``createStripeCheckoutSession`` callable
function; the returned session id (and URL, when the function provides one)
is handed back to the UI, which performs the redirect.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import BaseModel

from ..logging_config import get_logger
from ..settings import Settings, settings
from .base import CheckoutResult, PurchaseCategory
from .catalog import WEB_PRICES, ProductCatalog, WebPrice
from .errors import CheckoutAuthRequired, CheckoutSessionError, CheckoutUnavailable

logger = logging.getLogger(__name__)
events = get_logger("medswipe.analytics")


class CheckoutUser(BaseModel):
    uid: str
    id_token: str
    is_anonymous: bool = False


UserProvider = Callable[[], Awaitable[CheckoutUser | None]]


class WebCheckoutProvider:
    name = "stripe"

    def __init__(
        self,
        *,
        user_provider: UserProvider | None = None,
        catalog: ProductCatalog[WebPrice] = WEB_PRICES,
        app_settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_provider = user_provider
        self.catalog = catalog
        self.settings = app_settings or settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._init_task: asyncio.Task | None = None

    async def initialize(self) -> None:
        if self._client is not None:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._init_task)

    async def _initialize(self) -> None:
        try:
            if not self.settings.checkout_configured:
                raise CheckoutUnavailable(
                    "Stripe checkout requires STRIPE_PUBLISHABLE_KEY and CHECKOUT_SESSION_URL."
                )
            timeout = httpx.Timeout(
                self.settings.CHECKOUT_TIMEOUT_SECONDS,
                connect=self.settings.CHECKOUT_CONNECT_TIMEOUT_SECONDS,
            )
            self._client = httpx.AsyncClient(timeout=timeout, transport=self._transport)
            logger.info("Stripe checkout initialized.")
        except Exception:
            # let the next call start over instead of replaying this failure
            self._init_task = None
            raise

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._init_task = None

    async def _current_user(self) -> CheckoutUser | None:
        if self.user_provider is None:
            return None
        return await self.user_provider()

    async def _create_session(self, user: CheckoutUser, payload: dict[str, Any]) -> dict[str, Any]:
        assert self._client is not None
        url = (self.settings.CHECKOUT_SESSION_URL or "").strip()
        headers = {
            "Authorization": f"Bearer {user.id_token}",
            "Content-Type": "application/json",
        }
        try:
            response = await self._client.post(url, json={"data": payload}, headers=headers)
        except httpx.HTTPError as exc:
            raise CheckoutSessionError(f"Checkout session request failed: {exc}") from exc
        if response.status_code >= 400:
            raise CheckoutSessionError(
                f"Checkout session error {response.status_code}: {response.text[:200]}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise CheckoutSessionError("Invalid JSON from checkout session endpoint") from exc

        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, dict) or not result.get("sessionId"):
            raise CheckoutSessionError("Cloud function did not return a Session ID.")
        return result

    async def _checkout(
        self, category: PurchaseCategory, plan_type: str, quantity: int = 1
    ) -> CheckoutResult:
        price = self.catalog.resolve(category, plan_type)
        quantity = max(quantity or 1, 1)
        plan_name = price.plan_name
        if price.tier == "cme_credits":
            plan_name = f"{price.plan_name} ({quantity})"
            value = price.unit_amount * quantity
        else:
            value = price.unit_amount

        events.info(
            "begin_checkout",
            currency=self.settings.CHECKOUT_CURRENCY,
            value=round(value, 2),
            quantity=quantity,
            item_id=price.price_id,
            item_name=plan_name,
            tier=price.tier,
        )

        user = await self._current_user()
        if user is None or user.is_anonymous:
            raise CheckoutAuthRequired("Please register or log in before making a purchase.")

        try:
            await self.initialize()
            session = await self._create_session(
                user,
                {
                    "priceId": price.price_id,
                    "planName": plan_name,
                    "tier": price.tier,
                    "quantity": quantity,
                },
            )
        except Exception:
            logger.exception("Error during checkout for %s", plan_name)
            raise

        return CheckoutResult(
            provider=self.name,
            category=category,
            plan_type=plan_type,
            product_id=price.price_id,
            quantity=quantity,
            session_id=session["sessionId"],
            url=session.get("url"),
            raw=session,
        )

    async def start_board_review_checkout(
        self, plan_type: str, button: Any = None
    ) -> CheckoutResult:
        return await self._checkout(PurchaseCategory.BOARD_REVIEW, plan_type)

    async def start_cme_checkout(
        self, plan_type: str, button: Any = None, quantity: int = 1
    ) -> CheckoutResult:
        return await self._checkout(PurchaseCategory.CME, plan_type, quantity)

    async def restore_purchases(self) -> None:
        # Stripe entitlements are granted server-side; nothing to restore in the browser.
        return None


__all__ = ["CheckoutUser", "UserProvider", "WebCheckoutProvider"]
