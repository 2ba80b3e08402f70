"""Quote decisions and staff pricing actions."""

from orderflow.quotes.pricing_review import (
    adjust_pricing,
    approve_adjusted_pricing,
    approve_standard_pricing,
    quote_service_request,
)
from orderflow.quotes.workflow import check_quote_decision, submit_quote_decision

__all__ = [
    "adjust_pricing",
    "approve_adjusted_pricing",
    "approve_standard_pricing",
    "check_quote_decision",
    "quote_service_request",
    "submit_quote_decision",
]
