from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models import UnitStatus
from app.services.metrics import compute_occupancy_rate, compute_total_revenue, metrics_for

OWNER = "owner-1"


def unit(status, rent=None):
    return SimpleNamespace(status=status, monthly_rent=rent)


def test_occupancy_of_no_units_is_zero():
    assert compute_occupancy_rate([]) == 0.0


def test_occupancy_counts_only_rented_units():
    statuses = [UnitStatus.RENTED, UnitStatus.AVAILABLE, UnitStatus.RESERVED, UnitStatus.RENTED]
    assert compute_occupancy_rate(statuses) == 50.0
    assert compute_occupancy_rate([UnitStatus.RENTED]) == 100.0
    assert compute_occupancy_rate([UnitStatus.MAINTENANCE]) == 0.0


def test_revenue_sums_rented_units_and_ignores_missing_rent():
    units = [
        unit(UnitStatus.RENTED, Decimal("1300")),
        unit(UnitStatus.RENTED, None),
        unit(UnitStatus.AVAILABLE, Decimal("1200")),
        unit(UnitStatus.RENTED, Decimal("99.50")),
    ]
    assert compute_total_revenue(units) == Decimal("1399.50")
    assert compute_total_revenue([]) == Decimal("0")


@pytest.mark.asyncio
async def test_metrics_follow_unit_rows(service, session, two_unit_house):
    created = await service.create_property(two_unit_house, OWNER)

    metrics = await metrics_for(session, created.id)
    assert metrics.occupancy_rate == 50.0
    assert metrics.total_monthly_revenue == Decimal("1300")


@pytest.mark.asyncio
async def test_metrics_for_property_without_units(service, session, new_property):
    created = await service.create_property(new_property(), OWNER)

    metrics = await metrics_for(session, created.id)
    assert metrics.occupancy_rate == 0.0
    assert metrics.total_monthly_revenue == Decimal("0")
