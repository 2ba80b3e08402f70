"""SQLAlchemy async database models for OrderFlow.

Entities of all three kinds share one table; the ``kind`` column selects the
status catalog. Status history and notification logs are append-only.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class CompanyModel(Base):
    """Client company; carries the margin applied to tier prices."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    margin_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    contact_email: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class AssetModel(Base):
    """Rentable inventory asset."""

    __tablename__ = "assets"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    company_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(Text, nullable=False, default="AVAILABLE")
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    available_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Maintenance
    condition: Mapped[str | None] = mapped_column(Text)  # GREEN, ORANGE, RED
    refurb_days_estimate: Mapped[int | None] = mapped_column(Integer)

    # Physical attributes (per unit)
    volume_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False, default=0)
    weight_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("available_quantity >= 0", name="check_available_non_negative"),
    )


class PricingTierModel(Base):
    """Flat transport rate for a destination and volume band.

    ``volume_min`` is inclusive, ``volume_max`` exclusive. A city of ``*``
    covers every city of the country without a dedicated tier.
    """

    __tablename__ = "pricing_tiers"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    country: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    volume_min: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    volume_max: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    one_way_adjustment: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="AED")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("volume_min >= 0", name="check_volume_min_non_negative"),
        CheckConstraint("volume_max > volume_min", name="check_volume_band"),
        CheckConstraint("base_price > 0", name="check_base_price_positive"),
        Index("idx_pricing_tiers_destination", "country", "city", "is_active"),
    )


class EntityModel(Base):
    """Order, inbound request or service request.

    ``version`` is bumped on every status write; updates compare-and-swap on it.
    """

    __tablename__ = "entities"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    kind: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    company_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    billing_mode: Mapped[str] = mapped_column(Text, nullable=False, default="CLIENT_BILLABLE")

    status: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    commercial_status: Mapped[str | None] = mapped_column(Text)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Event window and destination
    event_start_date: Mapped[date | None] = mapped_column(Date)
    event_end_date: Mapped[date | None] = mapped_column(Date)
    venue_name: Mapped[str | None] = mapped_column(Text)
    venue_country: Mapped[str | None] = mapped_column(Text)
    venue_city: Mapped[str | None] = mapped_column(Text)
    trip_type: Mapped[str | None] = mapped_column(Text)
    contact_email: Mapped[str | None] = mapped_column(Text)
    special_instructions: Mapped[str | None] = mapped_column(Text)

    quote: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_entities_kind_status", "kind", "status"),
        Index("idx_entities_event_dates", "event_start_date", "event_end_date"),
    )


class LineItemModel(Base):
    """Asset line on an entity."""

    __tablename__ = "line_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    entity_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    asset_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    asset_name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    volume_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False, default=0)
    weight_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)

    condition: Mapped[str | None] = mapped_column(Text)
    maintenance_decision: Mapped[str | None] = mapped_column(Text)

    rebrand_target_brand_id: Mapped[str | None] = mapped_column(Text)
    rebrand_target_brand_custom: Mapped[str | None] = mapped_column(Text)
    rebrand_instructions: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_quantity_positive"),
    )


class StatusHistoryModel(Base):
    """Append-only status change record (never updated or deleted)."""

    __tablename__ = "status_history"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    entity_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    dimension: Mapped[str] = mapped_column(Text, nullable=False)  # operational | commercial
    from_status: Mapped[str | None] = mapped_column(Text)
    to_status: Mapped[str] = mapped_column(Text, nullable=False)
    actor_id: Mapped[str] = mapped_column(Text, nullable=False)
    actor_role: Mapped[str] = mapped_column(Text, nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("entity_id", "sequence", name="uq_status_history_sequence"),
    )


class NotificationLogModel(Base):
    """Delivery record for a post-transition notification."""

    __tablename__ = "notification_logs"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    entity_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    entity_code: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[str] = mapped_column(Text, nullable=False)
    recipients: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    status: Mapped[str] = mapped_column(Text, nullable=False, default="QUEUED", index=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
