"""
Occupancy and revenue figures derived from a property's units.

Nothing here is stored: both figures are aggregated from the current unit
rows on every read. A property without units has an occupancy rate of 0.0.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.models import PropertyUnit, UnitStatus

logger = get_logger()

ZERO = Decimal("0")


@dataclass(frozen=True)
class PropertyMetrics:
    occupancy_rate: float
    total_monthly_revenue: Decimal


def compute_occupancy_rate(statuses: Iterable[UnitStatus]) -> float:
    statuses = list(statuses)
    if not statuses:
        return 0.0
    rented = sum(1 for status in statuses if status == UnitStatus.RENTED)
    return 100.0 * rented / len(statuses)


def compute_total_revenue(units: Iterable) -> Decimal:
    """Sum of monthly rent over rented units; units without rent count as zero."""
    total = ZERO
    for unit in units:
        if unit.status == UnitStatus.RENTED and unit.monthly_rent is not None:
            total += Decimal(unit.monthly_rent)
    return total


def _rented():
    return PropertyUnit.status == UnitStatus.RENTED


async def occupancy_rate(session: AsyncSession, property_id) -> float:
    stmt = select(
        func.count(PropertyUnit.id),
        func.coalesce(func.sum(case((_rented(), 1), else_=0)), 0),
    ).where(PropertyUnit.property_id == property_id, PropertyUnit.not_deleted())
    total, rented = (await session.execute(stmt)).one()
    if not total:
        return 0.0
    return 100.0 * rented / total


async def total_monthly_revenue(session: AsyncSession, property_id) -> Decimal:
    stmt = select(func.coalesce(func.sum(PropertyUnit.monthly_rent), 0)).where(
        PropertyUnit.property_id == property_id,
        PropertyUnit.not_deleted(),
        _rented(),
    )
    revenue = (await session.execute(stmt)).scalar_one()
    return Decimal(str(revenue)) if revenue else ZERO


async def metrics_for(session: AsyncSession, property_id) -> PropertyMetrics:
    rate = await occupancy_rate(session, property_id)
    revenue = await total_monthly_revenue(session, property_id)
    logger.debug("Computed property metrics", property_id=str(property_id), occupancy_rate=rate, revenue=str(revenue))
    return PropertyMetrics(occupancy_rate=rate, total_monthly_revenue=revenue)
