"""Pytest configuration and fixtures for OrderFlow tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from orderflow.config import reset_config
from orderflow.db.models import AssetModel, Base, CompanyModel, PricingTierModel
from orderflow.inventory.models import AssetSnapshot
from orderflow.models import Actor, ActorRole, AssetStatus, Condition


@pytest.fixture(autouse=True)
def app_env(monkeypatch):
    """Minimal environment; the config singleton is rebuilt for every test."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("NOTIFICATIONS_ENABLED", "false")
    monkeypatch.setenv("FEASIBILITY_TIMEZONE", "UTC")
    reset_config()
    yield
    reset_config()


@pytest.fixture
def today() -> date:
    return date(2026, 10, 14)  # a Wednesday


@pytest.fixture
def client_actor() -> Actor:
    return Actor(id="client-1", role=ActorRole.CLIENT)


@pytest.fixture
def logistics_actor() -> Actor:
    return Actor(id="logistics-1", role=ActorRole.LOGISTICS)


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(id="admin-1", role=ActorRole.ADMIN)


@pytest.fixture
def make_asset():
    """Factory for inventory snapshots."""

    def _make(
        name: str = "Walnut Bar Counter",
        available_quantity: int = 10,
        condition: Condition | None = Condition.GREEN,
        refurb_days_estimate: int | None = None,
        status: AssetStatus = AssetStatus.AVAILABLE,
        volume_per_unit: Decimal = Decimal("1.000"),
        weight_per_unit: Decimal = Decimal("20.00"),
        asset_id: UUID | None = None,
    ) -> AssetSnapshot:
        return AssetSnapshot(
            id=asset_id or uuid4(),
            name=name,
            status=status,
            available_quantity=available_quantity,
            condition=condition,
            refurb_days_estimate=refurb_days_estimate,
            volume_per_unit=volume_per_unit,
            weight_per_unit=weight_per_unit,
        )

    return _make


class FakeInventory:
    """In-memory InventoryLookup that records every call."""

    def __init__(self, *assets: AssetSnapshot):
        self.assets = {asset.id: asset for asset in assets}
        self.calls: list[list[UUID]] = []

    async def get_assets(self, asset_ids):
        self.calls.append(list(asset_ids))
        return {asset_id: self.assets[asset_id] for asset_id in asset_ids if asset_id in self.assets}


@pytest.fixture
def fake_inventory():
    return FakeInventory


# ============================================================================
# Database
# ============================================================================


@pytest_asyncio.fixture()
async def db_engine(tmp_path):
    """File-backed SQLite so separate sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orderflow.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory) -> AsyncSession:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def seeded(db_session: AsyncSession):
    """Company, Dubai pricing tiers and a small inventory."""
    company = CompanyModel(id="acme-events", name="Acme Events", margin_percent=Decimal("25.00"))
    tiers = [
        PricingTierModel(
            country="United Arab Emirates",
            city="Dubai",
            volume_min=Decimal("0"),
            volume_max=Decimal("10"),
            base_price=Decimal("1000.00"),
            one_way_adjustment=Decimal("-200.00"),
        ),
        PricingTierModel(
            country="United Arab Emirates",
            city="Dubai",
            volume_min=Decimal("10"),
            volume_max=Decimal("20"),
            base_price=Decimal("1800.00"),
        ),
    ]
    green = AssetModel(
        company_id="acme-events",
        name="Walnut Bar Counter",
        total_quantity=10,
        available_quantity=10,
        condition=Condition.GREEN.value,
        volume_per_unit=Decimal("1.000"),
        weight_per_unit=Decimal("40.00"),
    )
    orange = AssetModel(
        company_id="acme-events",
        name="Velvet Lounge Sofa",
        total_quantity=4,
        available_quantity=4,
        condition=Condition.ORANGE.value,
        refurb_days_estimate=3,
        volume_per_unit=Decimal("2.000"),
        weight_per_unit=Decimal("60.00"),
    )
    red = AssetModel(
        company_id="acme-events",
        name="LED Backdrop Panel",
        total_quantity=2,
        available_quantity=2,
        condition=Condition.RED.value,
        refurb_days_estimate=5,
        volume_per_unit=Decimal("0.500"),
        weight_per_unit=Decimal("15.00"),
    )
    db_session.add_all([company, *tiers, green, orange, red])
    await db_session.commit()
    return {"company": company, "tiers": tiers, "green": green, "orange": orange, "red": red}
