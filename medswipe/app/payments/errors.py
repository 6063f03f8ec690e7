from __future__ import annotations


class BillingError(RuntimeError):
    """Base class for failures raised by the billing layer."""


class RuntimeMismatch(BillingError):
    """An operation ran outside the runtime it requires."""


class PluginUnavailable(BillingError):
    """No native purchase plugin could be discovered on the host."""


class UnknownProduct(BillingError):
    def __init__(self, category: str, plan_type: str) -> None:
        self.category = category
        self.plan_type = plan_type
        super().__init__(f"Unknown {category} product for plan {plan_type!r}.")


class PurchaseDispatchUnavailable(BillingError):
    """The purchase plugin exposes no known purchase method."""


class RestoreUnavailable(BillingError):
    """The purchase plugin exposes no known restore method."""


class ProviderContractViolation(BillingError):
    def __init__(self, provider: object, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Billing provider {type(provider).__name__} does not implement {operation}()."
        )


class CheckoutUnavailable(BillingError):
    """Web checkout is not configured or failed to initialize."""


class CheckoutAuthRequired(BillingError):
    """A signed-in, non-anonymous user is required to start a checkout."""


class CheckoutSessionError(BillingError):
    """The checkout-session endpoint failed or returned an unusable payload."""


__all__ = [
    "BillingError",
    "CheckoutAuthRequired",
    "CheckoutSessionError",
    "CheckoutUnavailable",
    "PluginUnavailable",
    "ProviderContractViolation",
    "PurchaseDispatchUnavailable",
    "RestoreUnavailable",
    "RuntimeMismatch",
    "UnknownProduct",
]
