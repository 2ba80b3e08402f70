"""Pricing tiers and checkout price estimation."""

from orderflow.pricing.estimator import estimate_order_price, estimate_price
from orderflow.pricing.tiers import PricingTier, create_pricing_tier, list_tiers, match_tier

__all__ = [
    "PricingTier",
    "create_pricing_tier",
    "estimate_order_price",
    "estimate_price",
    "list_tiers",
    "match_tier",
]
