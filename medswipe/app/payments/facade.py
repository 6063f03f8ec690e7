"""Billing service: the one checkout entry point the app talks to.

The first call detects the runtime and loads the matching provider; every
later call reuses it. Concurrent first calls share a single resolution, and a
failed resolution is forgotten so the next call tries again from scratch.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..runtime import RuntimeDetector
from .base import CheckoutProvider, CheckoutResult
from .errors import ProviderContractViolation

logger = logging.getLogger(__name__)

ProviderLoader = Callable[[], Awaitable[CheckoutProvider]]


class BillingService:
    def __init__(
        self,
        detector: RuntimeDetector,
        *,
        native_loader: ProviderLoader,
        web_loader: ProviderLoader,
    ) -> None:
        self.detector = detector
        self.native_loader = native_loader
        self.web_loader = web_loader
        self._provider: CheckoutProvider | None = None
        self._resolution: asyncio.Task | None = None

    @property
    def provider(self) -> CheckoutProvider | None:
        return self._provider

    async def _select_provider(self) -> CheckoutProvider:
        try:
            if self.detector.is_native_runtime():
                provider = await self.native_loader()
            else:
                provider = await self.web_loader()
            self._provider = provider
        finally:
            # cleared on every outcome, cancellation included, so the next call starts over
            self._resolution = None
        logger.info("Billing provider resolved: %s", type(provider).__name__)
        return provider

    async def resolve_provider(self) -> CheckoutProvider:
        if self._provider is not None:
            return self._provider
        if self._resolution is None or self._resolution.done():
            self._resolution = asyncio.ensure_future(self._select_provider())
        # shielded so one cancelled caller cannot cancel the shared attempt
        return await asyncio.shield(self._resolution)

    @staticmethod
    def _operation(provider: CheckoutProvider, name: str) -> Callable[..., Awaitable[Any]]:
        operation = getattr(provider, name, None)
        if not callable(operation):
            raise ProviderContractViolation(provider, name)
        return operation

    async def initialize(self) -> Any:
        return await self._delegate("initialize")

    async def _delegate(self, name: str, *args: Any) -> Any:
        try:
            provider = await self.resolve_provider()
            return await self._operation(provider, name)(*args)
        except Exception:
            logger.exception("Billing %s failed (args=%r)", name, args)
            raise

    async def start_board_review_checkout(
        self, plan_type: str, button: Any = None
    ) -> CheckoutResult:
        return await self._delegate("start_board_review_checkout", plan_type, button)

    async def start_cme_checkout(
        self, plan_type: str, button: Any = None, quantity: int = 1
    ) -> CheckoutResult:
        return await self._delegate("start_cme_checkout", plan_type, button, quantity)

    async def restore_purchases(self) -> None:
        return await self._delegate("restore_purchases")


__all__ = ["BillingService", "ProviderLoader"]
