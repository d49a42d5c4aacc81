"""Data access for property units."""
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.filters.predicates import Predicate
from app.models import PropertyUnit
from app.repositories.properties import FRESH_ROWS, ordering
from app.repositories.rendering import SqlPredicateRenderer
from app.services.pagination import PageSpec

SORTABLE_FIELDS = {
    "created_at", "updated_at", "unit_number", "monthly_rent", "bedrooms", "bathrooms", "sqft", "floor_number",
    "status", "available_from",
}

renderer = SqlPredicateRenderer(PropertyUnit)


async def insert(session: AsyncSession, unit: PropertyUnit) -> PropertyUnit:
    session.add(unit)
    await session.flush()
    return unit


async def get_for_property(session: AsyncSession, unit_id, property_id) -> Optional[PropertyUnit]:
    stmt = select(PropertyUnit).where(
        PropertyUnit.id == unit_id,
        PropertyUnit.property_id == property_id,
        PropertyUnit.not_deleted(),
    )
    return (await session.execute(stmt, execution_options=FRESH_ROWS)).scalar_one_or_none()


async def list_for_property(session: AsyncSession, property_id) -> List[PropertyUnit]:
    stmt = (
        select(PropertyUnit)
        .where(PropertyUnit.property_id == property_id, PropertyUnit.not_deleted())
        .order_by(PropertyUnit.created_at.asc(), PropertyUnit.id.asc())
    )
    return list((await session.execute(stmt, execution_options=FRESH_ROWS)).scalars().all())


async def find(
    session: AsyncSession, property_id, predicate: Predicate, spec: PageSpec
) -> Tuple[List[PropertyUnit], int]:
    where = (PropertyUnit.property_id == property_id, PropertyUnit.not_deleted(), renderer.render(predicate))
    total = (await session.execute(select(func.count(PropertyUnit.id)).where(*where))).scalar_one()
    stmt = (
        select(PropertyUnit)
        .where(*where)
        .order_by(*ordering(PropertyUnit, spec, SORTABLE_FIELDS))
        .offset(spec.offset)
        .limit(spec.limit)
    )
    return list((await session.execute(stmt, execution_options=FRESH_ROWS)).scalars().all()), total


async def next_unit_number(session: AsyncSession, property_id) -> str:
    """One past the highest purely numeric unit number in use, as a string."""
    stmt = select(PropertyUnit.unit_number).where(
        PropertyUnit.property_id == property_id, PropertyUnit.not_deleted()
    )
    numbers = [int(n) for n in (await session.execute(stmt)).scalars().all() if n and n.strip().isdigit()]
    return str(max(numbers, default=0) + 1)


async def soft_delete(session: AsyncSession, unit_id) -> int:
    stmt = (
        update(PropertyUnit)
        .where(PropertyUnit.id == unit_id, PropertyUnit.not_deleted())
        .values(**PropertyUnit.soft_delete_values())
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).rowcount


async def soft_delete_for_property(session: AsyncSession, property_id) -> int:
    stmt = (
        update(PropertyUnit)
        .where(PropertyUnit.property_id == property_id, PropertyUnit.not_deleted())
        .values(**PropertyUnit.soft_delete_values())
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).rowcount
