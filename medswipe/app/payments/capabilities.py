"""Capability probing for the native purchase plugin.

Plugin builds disagree on method names and argument shapes. Each known
shape is a named ``MethodVariant``; the variants a plugin satisfies are
detected once, when the plugin is discovered, and every later call goes
through the resolved variant.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..runtime import host_lookup


@dataclass(frozen=True, slots=True)
class MethodVariant:
    method_name: str
    # maps call arguments to the single payload the plugin expects; None means no payload
    shape: Callable[..., Any] | None = None

    def available_on(self, plugin: Any) -> bool:
        return callable(host_lookup(plugin, self.method_name))

    async def invoke(self, plugin: Any, *args: Any) -> Any:
        method = host_lookup(plugin, self.method_name)
        result = method() if self.shape is None else method(self.shape(*args))
        if inspect.isawaitable(result):
            result = await result
        return result


CONFIGURE = MethodVariant(
    "configure", lambda api_key, app_user_id: {"apiKey": api_key, "appUserID": app_user_id}
)
SETUP = MethodVariant(
    "setup", lambda api_key, app_user_id: {"apiKey": api_key, "appUserId": app_user_id}
)

PURCHASE_PACKAGE = MethodVariant(
    "purchasePackage",
    lambda product_id, options: {"identifier": product_id, "options": dict(options)},
)
PURCHASE_PRODUCT = MethodVariant(
    "purchaseProduct",
    lambda product_id, options: {"productIdentifier": product_id, **options},
)

RESTORE_PURCHASES = MethodVariant("restorePurchases")
SYNC_PURCHASES = MethodVariant("syncPurchases")

LOG_IN = MethodVariant("logIn", lambda app_user_id: app_user_id)
# some plugin versions only accept the object form of logIn
LOG_IN_OBJECT = MethodVariant("logIn", lambda app_user_id: {"appUserID": app_user_id})
IDENTIFY = MethodVariant("identify", lambda app_user_id: app_user_id)
SET_APP_USER_ID = MethodVariant("setAppUserID", lambda app_user_id: app_user_id)

LOG_OUT = MethodVariant("logOut")
RESET = MethodVariant("reset")

# Preference order matters: the first variant a plugin satisfies wins.
CONFIGURE_VARIANTS = (CONFIGURE, SETUP)
PURCHASE_VARIANTS = (PURCHASE_PACKAGE, PURCHASE_PRODUCT)
RESTORE_VARIANTS = (RESTORE_PURCHASES, SYNC_PURCHASES)
LOGIN_VARIANTS = (LOG_IN, IDENTIFY, SET_APP_USER_ID)
LOGOUT_VARIANTS = (LOG_OUT, RESET)


def first_available(plugin: Any, variants: Sequence[MethodVariant]) -> MethodVariant | None:
    for variant in variants:
        if variant.available_on(plugin):
            return variant
    return None


@dataclass(frozen=True, slots=True)
class PluginCapabilities:
    configure: MethodVariant | None
    purchase: MethodVariant | None
    restore: MethodVariant | None
    login: MethodVariant | None
    logout: MethodVariant | None

    @classmethod
    def detect(cls, plugin: Any) -> PluginCapabilities:
        return cls(
            configure=first_available(plugin, CONFIGURE_VARIANTS),
            purchase=first_available(plugin, PURCHASE_VARIANTS),
            restore=first_available(plugin, RESTORE_VARIANTS),
            login=first_available(plugin, LOGIN_VARIANTS),
            logout=first_available(plugin, LOGOUT_VARIANTS),
        )


__all__ = [
    "CONFIGURE_VARIANTS",
    "LOGIN_VARIANTS",
    "LOGOUT_VARIANTS",
    "LOG_IN_OBJECT",
    "MethodVariant",
    "PURCHASE_VARIANTS",
    "PluginCapabilities",
    "RESTORE_VARIANTS",
    "first_available",
]
