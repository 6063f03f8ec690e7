from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

from ..runtime import RuntimeDetector
from ..settings import Settings, settings
from .base import CheckoutProvider
from .facade import BillingService

if TYPE_CHECKING:
    import httpx

    from .web import UserProvider


def _import_provider_module(name: str) -> Any:
    return importlib.import_module(f"{__package__}.{name}")


def create_billing_service(
    host: Any,
    *,
    app_settings: Settings | None = None,
    user_provider: UserProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BillingService:
    """Build the billing service for one host environment.

    Call once at startup and pass the instance to whatever starts checkouts.
    Provider modules are imported on first use, so the native adapter is only
    loaded inside the native shell.
    """
    app_settings = app_settings or settings
    detector = RuntimeDetector(host)

    async def load_native() -> CheckoutProvider:
        module = _import_provider_module("native")
        return module.NativeCheckoutProvider(host, detector=detector, app_settings=app_settings)

    async def load_web() -> CheckoutProvider:
        module = _import_provider_module("web")
        return module.WebCheckoutProvider(
            user_provider=user_provider, app_settings=app_settings, transport=transport
        )

    return BillingService(detector, native_loader=load_native, web_loader=load_web)
