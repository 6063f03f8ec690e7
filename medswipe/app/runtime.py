"""Runtime detection for the Capacitor native shell."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

NATIVE_PLATFORMS = frozenset({"ios", "android"})
BRIDGE_NAME = "Capacitor"


def host_lookup(obj: Any, name: str) -> Any:
    """Read ``name`` from a host object, which may be a mapping or a namespace."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _call_bridge(bridge: Any, name: str) -> Any:
    method = host_lookup(bridge, name)
    if not callable(method):
        return None
    return method()


def is_native_runtime(host: Any) -> bool:
    """Return True when ``host`` is running inside the native Capacitor shell.

    An explicit ``isNativePlatform()`` answer of True wins; otherwise the
    reported ``getPlatform()`` name decides. A host without a bridge is
    never native.
    """
    bridge = host_lookup(host, BRIDGE_NAME)
    if not bridge:
        return False

    if _call_bridge(bridge, "isNativePlatform") is True:
        return True

    platform_name = _call_bridge(bridge, "getPlatform")
    return isinstance(platform_name, str) and platform_name in NATIVE_PLATFORMS


class RuntimeDetector:
    """Binds the native-runtime check to one host environment."""

    def __init__(self, host: Any) -> None:
        self.host = host

    def is_native_runtime(self) -> bool:
        return is_native_runtime(self.host)


__all__ = ["NATIVE_PLATFORMS", "RuntimeDetector", "host_lookup", "is_native_runtime"]
