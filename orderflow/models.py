"""OrderFlow Pydantic models for type-safe data validation.

Domain values shared by the lifecycle engine, the checkout flow and the web
layer. Status values themselves are defined per entity kind in
``orderflow.lifecycle.catalog``; entities store them as plain strings.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntityKind(str, Enum):
    """Kinds of records tracked through a lifecycle."""

    ORDER = "ORDER"
    INBOUND_REQUEST = "INBOUND_REQUEST"
    SERVICE_REQUEST = "SERVICE_REQUEST"


class Dimension(str, Enum):
    """Independent status dimensions of an entity."""

    OPERATIONAL = "operational"
    COMMERCIAL = "commercial"


class BillingMode(str, Enum):
    CLIENT_BILLABLE = "CLIENT_BILLABLE"
    INTERNAL = "INTERNAL"  # no commercial dimension, never quoted


class Condition(str, Enum):
    """Asset condition tag."""

    GREEN = "GREEN"  # usable as-is
    ORANGE = "ORANGE"  # usable, client may choose to fix
    RED = "RED"  # must be fixed before use


class MaintenanceDecision(str, Enum):
    FIX_IN_ORDER = "FIX_IN_ORDER"
    USE_AS_IS = "USE_AS_IS"


class TripType(str, Enum):
    ROUND_TRIP = "ROUND_TRIP"
    ONE_WAY = "ONE_WAY"


class AssetStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    OUT = "OUT"
    IN_MAINTENANCE = "IN_MAINTENANCE"
    RETIRED = "RETIRED"


class ActorRole(str, Enum):
    CLIENT = "CLIENT"
    LOGISTICS = "LOGISTICS"  # warehouse/logistics staff (prices orders)
    ADMIN = "ADMIN"  # platform admin (approves adjusted pricing)
    SYSTEM = "SYSTEM"  # automated transitions


class QuoteDecision(str, Enum):
    APPROVE = "APPROVE"
    DECLINE = "DECLINE"
    REQUEST_REVISION = "REQUEST_REVISION"


class Action(str, Enum):
    """Every action the lifecycle state machine understands."""

    SUBMIT = "SUBMIT"
    START_REVIEW = "START_REVIEW"
    REQUEST_APPROVAL = "REQUEST_APPROVAL"
    SUBMIT_QUOTE = "SUBMIT_QUOTE"
    APPROVE = "APPROVE"
    DECLINE = "DECLINE"
    REQUEST_REVISION = "REQUEST_REVISION"
    INVOICE = "INVOICE"
    MARK_PAID = "MARK_PAID"
    CONFIRM = "CONFIRM"
    START_FABRICATION = "START_FABRICATION"
    START_PREPARATION = "START_PREPARATION"
    MARK_READY = "MARK_READY"
    DISPATCH = "DISPATCH"
    MARK_DELIVERED = "MARK_DELIVERED"
    START_EVENT = "START_EVENT"
    END_EVENT = "END_EVENT"
    CLOSE = "CLOSE"
    START_WORK = "START_WORK"
    COMPLETE = "COMPLETE"
    CANCEL = "CANCEL"


class NotificationStatus(str, Enum):
    QUEUED = "QUEUED"
    SENT = "SENT"
    FAILED = "FAILED"
    RETRYING = "RETRYING"


class Actor(BaseModel):
    """Identity of whoever triggers a transition (authorized upstream)."""

    id: str
    role: ActorRole = ActorRole.CLIENT


SYSTEM_ACTOR = Actor(id="system", role=ActorRole.SYSTEM)


class LineItem(BaseModel):
    """Asset requested by an entity."""

    id: UUID = Field(default_factory=uuid4)
    asset_id: UUID
    asset_name: str
    quantity: int = Field(gt=0)
    volume_per_unit: Decimal = Decimal("0")  # m3
    weight_per_unit: Decimal = Decimal("0")  # kg

    condition: Condition | None = None
    maintenance_decision: MaintenanceDecision | None = None

    # Rebrand request
    rebrand_target_brand_id: str | None = None
    rebrand_target_brand_custom: str | None = None
    rebrand_instructions: str | None = None

    @property
    def is_rebrand_request(self) -> bool:
        return bool(
            self.rebrand_target_brand_id
            or self.rebrand_target_brand_custom
            or self.rebrand_instructions
        )

    @property
    def total_volume(self) -> Decimal:
        return self.volume_per_unit * self.quantity

    @property
    def total_weight(self) -> Decimal:
        return self.weight_per_unit * self.quantity


class StatusHistoryEntry(BaseModel):
    """Append-only audit entry for one status change."""

    sequence: int
    dimension: Dimension
    from_status: str | None  # None for the creation entry
    to_status: str
    actor_id: str
    actor_role: ActorRole
    timestamp: datetime = Field(default_factory=utcnow)
    note: str | None = None


class QuoteLine(BaseModel):
    label: str
    amount: Decimal


class QuoteState(BaseModel):
    """Price attached to an entity once staff have priced it."""

    total: Decimal
    currency: str
    base_price: Decimal | None = None
    margin_percent: Decimal | None = None
    margin_amount: Decimal | None = None
    breakdown: list[QuoteLine] = Field(default_factory=list)
    pricing_tier_id: UUID | None = None
    adjusted_price: Decimal | None = None
    adjustment_reason: str | None = None
    quoted_at: datetime | None = None

    @field_validator("total")
    @classmethod
    def validate_total(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("total must be non-negative")
        return v


class Entity(BaseModel):
    """Order, inbound-stock-request or service-request."""

    id: UUID = Field(default_factory=uuid4)
    kind: EntityKind
    code: str
    company_id: str
    billing_mode: BillingMode = BillingMode.CLIENT_BILLABLE

    status: str
    commercial_status: str | None = None
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    # Event window and destination
    event_start_date: date | None = None
    event_end_date: date | None = None
    venue_name: str | None = None
    venue_country: str | None = None
    venue_city: str | None = None
    trip_type: TripType | None = None
    contact_email: str | None = None
    special_instructions: str | None = None

    quote: QuoteState | None = None
    line_items: list[LineItem] = Field(default_factory=list)
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "ORDER",
                "code": "ORD-20261017-001",
                "company_id": "acme-events",
                "billing_mode": "CLIENT_BILLABLE",
                "status": "QUOTED",
                "commercial_status": "QUOTED",
                "venue_country": "United Arab Emirates",
                "venue_city": "Dubai",
                "trip_type": "ROUND_TRIP",
            }
        }

    @model_validator(mode="after")
    def check_billing_dimension(self) -> Entity:
        if self.billing_mode == BillingMode.INTERNAL and self.commercial_status is not None:
            raise ValueError("Internal entities have no commercial status")
        if self.billing_mode == BillingMode.CLIENT_BILLABLE and self.commercial_status is None:
            raise ValueError("Billable entities require a commercial status")
        return self

    @property
    def is_billable(self) -> bool:
        return self.billing_mode == BillingMode.CLIENT_BILLABLE

    @property
    def has_rebrand_items(self) -> bool:
        return any(item.is_rebrand_request for item in self.line_items)

    def current(self, dimension: Dimension) -> str | None:
        if dimension == Dimension.OPERATIONAL:
            return self.status
        return self.commercial_status

    def history_for(self, dimension: Dimension) -> list[StatusHistoryEntry]:
        return [entry for entry in self.status_history if entry.dimension == dimension]

    @property
    def next_sequence(self) -> int:
        if not self.status_history:
            return 1
        return self.status_history[-1].sequence + 1


class Destination(BaseModel):
    country: str
    city: str


class AvailabilityItem(BaseModel):
    asset_id: UUID
    quantity: int = Field(gt=0)


class FeasibilityItem(BaseModel):
    asset_id: UUID
    maintenance_decision: MaintenanceDecision | None = None


class FeasibilityIssue(BaseModel):
    """An item whose refurbishment cannot finish before the event starts."""

    asset_id: UUID
    asset_name: str
    refurb_days_estimate: int
    earliest_feasible_date: date
    condition: Condition | None = None
    maintenance_mode: str  # MANDATORY_RED or OPTIONAL_ORANGE_FIX
    message: str


class FeasibilityResult(BaseModel):
    feasible: bool
    issues: list[FeasibilityIssue] = Field(default_factory=list)
    checked_on: date
    exclude_weekends: bool = False
    weekend_days: list[int] = Field(default_factory=list)
    timezone: str = "UTC"


class PricingEstimate(BaseModel):
    """Checkout price preview.

    ``has_tier=False`` means the destination needs a custom quote; the
    monetary fields are then left empty.
    """

    has_tier: bool
    has_rebrand_items: bool = False
    total: Decimal | None = None
    currency: str | None = None
    trip_type: TripType
    volume: Decimal = Decimal("0")
    weight: Decimal = Decimal("0")
    pricing_tier_id: UUID | None = None
    base_price: Decimal | None = None
    margin_percent: Decimal | None = None
    margin_amount: Decimal | None = None
    one_way_adjustment: Decimal | None = None
    disclaimer: str | None = None
