"""Pydantic request/response models for the OrderFlow HTTP API.

Domain models (``Entity``, ``FeasibilityResult``, ``PricingEstimate``) are
returned as-is; this module only holds the shapes that exist for the API.

Usage:
    from orderflow.web.models import TransitionRequest

    @router.post("/entities/{entity_id}/transition")
    async def transition_entity(entity_id: UUID, body: TransitionRequest):
        ...
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from orderflow.checkout.submission import CheckoutItem
from orderflow.models import (
    Action,
    AvailabilityItem,
    Destination,
    Entity,
    FeasibilityItem,
    FeasibilityResult,
    PricingEstimate,
    QuoteDecision,
    QuoteLine,
    TripType,
)


# ============================================================================
# Checkout
# ============================================================================


class AvailabilityRequest(BaseModel):
    """Used by: POST /checkout/availability"""

    items: list[AvailabilityItem] = Field(min_length=1)


class AvailabilityResponse(BaseModel):
    available: bool
    issues: list[str] = Field(default_factory=list)


class FeasibilityRequest(BaseModel):
    """Used by: POST /checkout/feasibility

    ``red_only`` runs the early check on RED items as soon as the event
    date is known, before the cart is complete.
    """

    items: list[FeasibilityItem] = Field(min_length=1)
    event_start_date: date
    red_only: bool = False


class EstimateRequest(BaseModel):
    """Used by: POST /checkout/estimate"""

    company_id: str
    items: list[CheckoutItem] = Field(min_length=1)
    destination: Destination
    trip_type: TripType = TripType.ROUND_TRIP


class SubmissionResponse(BaseModel):
    """Used by: POST /checkout/submit"""

    entity: Entity
    feasibility: FeasibilityResult
    estimate: PricingEstimate


# ============================================================================
# Lifecycle
# ============================================================================


class TransitionRequest(BaseModel):
    """Used by: POST /entities/{id}/transition"""

    action: Action
    note: str | None = None


class QuoteDecisionRequest(BaseModel):
    """Used by: POST /entities/{id}/quote/decision

    ``note`` is the decline reason when ``decision`` is DECLINE.
    """

    decision: QuoteDecision
    note: str | None = None


# ============================================================================
# Pricing review
# ============================================================================


class ApproveStandardRequest(BaseModel):
    note: str | None = None


class AdjustPricingRequest(BaseModel):
    adjusted_price: Decimal
    reason: str


class ApproveAdjustedRequest(BaseModel):
    base_price: Decimal
    margin_percent: Decimal
    note: str | None = None


class ServiceQuoteRequest(BaseModel):
    """Used by: POST /service-requests/{entity_id}/quote"""

    lines: list[QuoteLine] = Field(min_length=1)
    note: str | None = None


class PricingTierCreate(BaseModel):
    """Used by: POST /pricing-tiers"""

    country: str
    city: str
    volume_min: Decimal
    volume_max: Decimal
    base_price: Decimal
    one_way_adjustment: Decimal = Decimal("0")
    currency: str = "AED"


class PricingTierUpdate(BaseModel):
    """Used by: PATCH /pricing-tiers/{id}"""

    is_active: bool


class PricingTierResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    country: str
    city: str
    volume_min: Decimal
    volume_max: Decimal
    base_price: Decimal
    one_way_adjustment: Decimal
    currency: str
    is_active: bool


# ============================================================================
# Catalog
# ============================================================================


class StatusInfoResponse(BaseModel):
    status: str
    label: str
    allowed_next: list[str]
    is_terminal: bool
    color: str
    icon: str


class StatusCatalogResponse(BaseModel):
    kind: str
    dimension: str
    initial: str
    statuses: list[StatusInfoResponse]
    actions: list[str]


# ============================================================================
# Notifications
# ============================================================================


class NotificationLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_id: UUID
    entity_code: str
    notification_type: str
    recipients: list[str]
    status: str
    attempts: int
    error_message: str | None
    created_at: datetime | None
    sent_at: datetime | None
    last_attempt_at: datetime | None
