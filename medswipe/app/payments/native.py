"""RevenueCat checkout provider for the Capacitor native shell.

Loaded by the billing service only when the host reports a native runtime.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..runtime import RuntimeDetector, host_lookup
from ..settings import Settings, settings
from .base import CheckoutResult, PurchaseCategory
from .capabilities import LOG_IN, LOG_IN_OBJECT, PluginCapabilities
from .catalog import NATIVE_PRODUCTS, ProductCatalog
from .errors import (
    PluginUnavailable,
    PurchaseDispatchUnavailable,
    RestoreUnavailable,
    RuntimeMismatch,
)

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True, slots=True)
class PluginLocation:
    """A path of attribute/key names from the host to a plugin registration."""

    path: tuple[str, ...]

    def lookup(self, host: Any) -> Any:
        node = host
        for name in self.path:
            node = host_lookup(node, name)
            if node is None:
                return None
        return node

    def __str__(self) -> str:
        return ".".join(self.path)


# Searched in order; the first registration present on the host wins.
PLUGIN_LOCATIONS: tuple[PluginLocation, ...] = (
    PluginLocation(("Purchases",)),
    PluginLocation(("RevenueCatPurchases",)),
    PluginLocation(("Capacitor", "Plugins", "RevenueCatPurchases")),
    PluginLocation(("Capacitor", "Plugins", "RevenueCat")),
    PluginLocation(("Capacitor", "Plugins", "Purchases")),
)

# Host-level config slots, checked before Settings.REVENUECAT_API_KEY.
API_KEY_SLOTS: tuple[str, ...] = ("REVENUECAT_API_KEY", "__REVENUECAT_API_KEY__")


def extract_app_user_id(auth_state: Any) -> str | None:
    """Return the signed-in, non-anonymous user's uid, or None."""
    user = host_lookup(auth_state, "user")
    uid = host_lookup(user, "uid")
    if not isinstance(uid, str):
        return None
    if host_lookup(user, "isAnonymous"):
        return None
    return uid.strip() or None


class NativeCheckoutProvider:
    name = "revenuecat"

    def __init__(
        self,
        host: Any,
        *,
        detector: RuntimeDetector | None = None,
        catalog: ProductCatalog[str] = NATIVE_PRODUCTS,
        locations: Sequence[PluginLocation] = PLUGIN_LOCATIONS,
        app_settings: Settings | None = None,
    ) -> None:
        self.host = host
        self.detector = detector or RuntimeDetector(host)
        self.catalog = catalog
        self.locations = tuple(locations)
        self.settings = app_settings or settings

        self.configured = False
        self._plugin: Any = None
        self._capabilities: PluginCapabilities | None = None
        self._last_synced_user_id: Any = _UNSET
        self._sync_lock = asyncio.Lock()
        self._configuring: asyncio.Task | None = None
        self._auth_listener_attached = False
        self._pending_syncs: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Plugin discovery
    # ------------------------------------------------------------------
    def discover_plugin(self) -> Any:
        if self._plugin is not None:
            return self._plugin

        for location in self.locations:
            plugin = location.lookup(self.host)
            if plugin:
                logger.debug("RevenueCat plugin found at %s", location)
                self._plugin = plugin
                self._capabilities = PluginCapabilities.detect(plugin)
                return plugin

        raise PluginUnavailable("RevenueCat Purchases plugin is not available on the host.")

    @property
    def capabilities(self) -> PluginCapabilities:
        if self._capabilities is None:
            self.discover_plugin()
        assert self._capabilities is not None
        return self._capabilities

    def _ensure_native_runtime(self) -> None:
        if not self.detector.is_native_runtime():
            raise RuntimeMismatch("RevenueCat native provider used outside of a native runtime.")

    def _read_api_key(self) -> str | None:
        candidates = [host_lookup(self.host, slot) for slot in API_KEY_SLOTS]
        candidates.append(self.settings.REVENUECAT_API_KEY)
        for value in candidates:
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        self._ensure_native_runtime()
        if self.configured:
            return
        if self._configuring is None or self._configuring.done():
            self._configuring = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._configuring)

    async def _initialize(self) -> None:
        try:
            plugin = self.discover_plugin()
            try:
                await self._configure(plugin)
            except Exception:
                logger.exception("Failed to configure RevenueCat.")
                raise
        finally:
            # concurrent callers share one attempt; a finished one never blocks a retry
            self._configuring = None

    async def _configure(self, plugin: Any) -> None:
        api_key = self._read_api_key()
        if not api_key:
            logger.warning(
                "RevenueCat API key missing. Set REVENUECAT_API_KEY before initializing."
            )
            return

        variant = self.capabilities.configure
        if variant is None:
            logger.warning("RevenueCat plugin does not expose a configure/setup method.")
            return

        initial_user_id = extract_app_user_id(host_lookup(self.host, "authState"))
        await variant.invoke(plugin, api_key, initial_user_id)
        self.configured = True
        logger.info("RevenueCat configured via %s()", variant.method_name)

        self._last_synced_user_id = initial_user_id
        try:
            self._attach_auth_listener()
        except Exception:
            logger.exception("Could not attach the RevenueCat auth state listener.")
        await self.sync_app_user()

    # ------------------------------------------------------------------
    # App user sync
    # ------------------------------------------------------------------
    async def sync_app_user(self, auth_state: Any = None) -> None:
        """Push the signed-in user's id to RevenueCat, or log out when signed out.

        Calls are serialized; failures are logged and do not propagate.
        """
        if auth_state is None:
            auth_state = host_lookup(self.host, "authState")
        async with self._sync_lock:
            try:
                await self._sync_app_user(auth_state)
            except Exception:
                logger.exception("RevenueCat app user sync failed.")

    async def _sync_app_user(self, auth_state: Any) -> None:
        target_user_id = extract_app_user_id(auth_state)
        if target_user_id == self._last_synced_user_id:
            return

        plugin = self.discover_plugin()
        if target_user_id:
            if await self._log_in(plugin, target_user_id):
                self._last_synced_user_id = target_user_id
            return

        did_reset = await self._log_out(plugin)
        if did_reset or self._last_synced_user_id is not _UNSET:
            self._last_synced_user_id = None

    async def _log_in(self, plugin: Any, app_user_id: str) -> bool:
        variant = self.capabilities.login
        if variant is None:
            logger.warning("RevenueCat plugin is missing a method to assign the app user ID.")
            return False

        if variant is LOG_IN:
            try:
                await LOG_IN.invoke(plugin, app_user_id)
            except Exception:
                await LOG_IN_OBJECT.invoke(plugin, app_user_id)
            return True

        await variant.invoke(plugin, app_user_id)
        return True

    async def _log_out(self, plugin: Any) -> bool:
        variant = self.capabilities.logout
        if variant is None:
            logger.warning("RevenueCat plugin is missing a method to clear the app user ID.")
            return False
        await variant.invoke(plugin)
        return True

    def _attach_auth_listener(self) -> None:
        add_listener = host_lookup(self.host, "addEventListener")
        if self._auth_listener_attached or not callable(add_listener):
            return
        add_listener("authStateChanged", self._on_auth_state_changed)
        self._auth_listener_attached = True

    def _on_auth_state_changed(self, event: Any = None) -> None:
        auth_state = host_lookup(event, "detail") or host_lookup(self.host, "authState")
        task = asyncio.ensure_future(self.sync_app_user(auth_state))
        self._pending_syncs.add(task)
        task.add_done_callback(self._pending_syncs.discard)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------
    async def _purchase(self, product_id: str, options: dict[str, Any]) -> Any:
        plugin = self.discover_plugin()
        variant = self.capabilities.purchase
        if variant is None:
            raise PurchaseDispatchUnavailable("RevenueCat plugin is missing purchase APIs.")
        return await variant.invoke(plugin, product_id, options)

    async def _checkout(
        self, category: PurchaseCategory, plan_type: str, quantity: int = 1
    ) -> CheckoutResult:
        self._ensure_native_runtime()
        product_id = self.catalog.resolve(category, plan_type)
        options: dict[str, Any] = {"quantity": quantity} if quantity and quantity > 1 else {}

        try:
            raw = await self._purchase(product_id, options)
        except Exception:
            logger.exception(
                "RevenueCat purchase failed for %s plan %r.", category.value, plan_type
            )
            raise

        return CheckoutResult(
            provider=self.name,
            category=category,
            plan_type=plan_type,
            product_id=product_id,
            quantity=max(quantity or 1, 1),
            raw=raw if isinstance(raw, dict) else None,
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
        self._ensure_native_runtime()
        plugin = self.discover_plugin()

        try:
            variant = self.capabilities.restore
            if variant is None:
                raise RestoreUnavailable(
                    "RevenueCat plugin does not expose a restore purchases method."
                )
            await variant.invoke(plugin)
        except Exception:
            logger.exception("RevenueCat restore purchases failed.")
            raise


__all__ = [
    "API_KEY_SLOTS",
    "NativeCheckoutProvider",
    "PLUGIN_LOCATIONS",
    "PluginLocation",
    "extract_app_user_id",
]
