"""Checkout provider abstraction: Stripe on the web, RevenueCat in the native shell."""

from .base import CheckoutProvider, CheckoutResult, PurchaseCategory
from .facade import BillingService
from .factory import create_billing_service

__all__ = [
    "BillingService",
    "CheckoutProvider",
    "CheckoutResult",
    "PurchaseCategory",
    "create_billing_service",
]
