"""Checkout flow: cart validation, feasibility and order submission."""

from orderflow.checkout.cache import FeasibilityCache
from orderflow.checkout.submission import (
    CheckoutItem,
    OrderSubmission,
    SubmissionOutcome,
    check_red_items,
    estimate_cart,
    submit_order,
    validate_line_items,
)

__all__ = [
    "CheckoutItem",
    "FeasibilityCache",
    "OrderSubmission",
    "SubmissionOutcome",
    "check_red_items",
    "estimate_cart",
    "submit_order",
    "validate_line_items",
]
