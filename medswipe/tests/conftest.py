import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# keep a developer's .env key from leaking into configuration tests
os.environ["REVENUECAT_API_KEY"] = ""

from medswipe.app.settings import Settings  # noqa: E402


class RecordingPlugin:
    """Stand-in for the RevenueCat Capacitor plugin.

    Only the methods named in ``methods`` exist on the instance; each records
    its call and returns ``result``.
    """

    def __init__(self, *methods: str, result=None, fail=None):
        self.calls: list[tuple[str, tuple]] = []
        self._result = result
        self._fail = fail or {}
        for name in methods:
            setattr(self, name, self._recorder(name))

    def _recorder(self, name):
        async def method(*args):
            self.calls.append((name, args))
            error = self._fail.get(name)
            if error is not None:
                raise error
            return self._result

        return method

    def calls_to(self, name):
        return [args for called, args in self.calls if called == name]


def make_bridge(*, native=True, plugins=None, platform=None):
    bridge = SimpleNamespace(Plugins=SimpleNamespace(**(plugins or {})))
    if platform is not None:
        bridge.getPlatform = lambda: platform
    else:
        bridge.isNativePlatform = lambda: native
    return bridge


def make_host(*, native=True, plugin=None, api_key="appl_test_key", **extra):
    plugins = {"Purchases": plugin} if plugin is not None else {}
    host = SimpleNamespace(Capacitor=make_bridge(native=native, plugins=plugins))
    if api_key is not None:
        host.REVENUECAT_API_KEY = api_key
    for name, value in extra.items():
        setattr(host, name, value)
    return host


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        REVENUECAT_API_KEY=None,
        STRIPE_PUBLISHABLE_KEY="pk_test_123",
        CHECKOUT_SESSION_URL="https://functions.test/createStripeCheckoutSession",
    )


@pytest.fixture
def plugin() -> RecordingPlugin:
    return RecordingPlugin("configure", "purchasePackage", "restorePurchases", "logIn", "logOut")
