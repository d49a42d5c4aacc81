"""Data access for properties and their tags."""
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.filters.predicates import Predicate
from app.models import Property, PropertyImage, PropertyStatus, PropertyTag, PropertyUnit, UnitStatus
from app.repositories.rendering import SqlPredicateRenderer
from app.services.counters import CounterMutation, counter_updates
from app.services.pagination import PageSpec, snake_case

logger = get_logger()

# Bulk UPDATEs bypass the identity map, so entity reads overwrite loaded rows
FRESH_ROWS = {"populate_existing": True}

SORTABLE_FIELDS = {
    "created_at", "updated_at", "name", "monthly_rent", "listing_price", "view_count", "inquiry_count",
    "favorite_count", "status", "property_type", "city", "bedrooms", "bathrooms", "total_sqft",
    "available_from", "is_featured",
}

renderer = SqlPredicateRenderer(
    Property,
    relations={"images": (Property.images, PropertyImage)},
    collections={"tags": lambda tag: Property.tag_rows.any(PropertyTag.tag == tag)},
)


def sort_column(model, sort_field: str, sortable) -> object:
    name = snake_case(sort_field)
    if name not in sortable:
        logger.warning("Unknown sort field; falling back to created_at", sort_field=sort_field)
        name = "created_at"
    return getattr(model, name)


def ordering(model, spec: PageSpec, sortable) -> list:
    column = sort_column(model, spec.sort_field, sortable)
    primary = column.asc() if spec.ascending else column.desc()
    # id as tie-breaker keeps pages stable
    return [primary, model.id.asc()]


async def insert(session: AsyncSession, prop: Property) -> Property:
    session.add(prop)
    await session.flush()
    return prop


async def get(session: AsyncSession, property_id, include_deleted: bool = False) -> Optional[Property]:
    stmt = select(Property).where(Property.id == property_id)
    if not include_deleted:
        stmt = stmt.where(Property.not_deleted())
    return (await session.execute(stmt, execution_options=FRESH_ROWS)).scalar_one_or_none()


async def get_owned(session: AsyncSession, property_id, owner_id: str) -> Optional[Property]:
    """The live property if ``owner_id`` owns it, else None."""
    stmt = select(Property).where(
        Property.id == property_id,
        Property.owner_id == owner_id,
        Property.not_deleted(),
    )
    return (await session.execute(stmt, execution_options=FRESH_ROWS)).scalar_one_or_none()


async def find(session: AsyncSession, predicate: Predicate, spec: PageSpec) -> Tuple[List[Property], int]:
    where = (Property.not_deleted(), renderer.render(predicate))
    total = (await session.execute(select(func.count(Property.id)).where(*where))).scalar_one()
    stmt = (
        select(Property)
        .where(*where)
        .order_by(*ordering(Property, spec, SORTABLE_FIELDS))
        .offset(spec.offset)
        .limit(spec.limit)
    )
    rows = (await session.execute(stmt, execution_options=FRESH_ROWS)).scalars().all()
    return list(rows), total


async def adjust_counters(session: AsyncSession, property_id, mutation: CounterMutation) -> int:
    """Apply counter changes in one UPDATE; returns the number of rows touched."""
    values = counter_updates(Property, mutation)
    if not values:
        return 0
    stmt = (
        update(Property)
        .where(Property.id == property_id, Property.not_deleted())
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount


async def soft_delete(session: AsyncSession, property_id) -> int:
    stmt = (
        update(Property)
        .where(Property.id == property_id, Property.not_deleted())
        .values(**Property.soft_delete_values())
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount


async def get_tags(session: AsyncSession, property_id) -> List[str]:
    stmt = select(PropertyTag.tag).where(PropertyTag.property_id == property_id).order_by(PropertyTag.tag)
    return list((await session.execute(stmt)).scalars().all())


async def replace_tags(session: AsyncSession, property_id, tags: Sequence[str]) -> List[str]:
    cleaned = sorted({tag.strip() for tag in tags if tag and tag.strip()})
    await session.execute(delete(PropertyTag).where(PropertyTag.property_id == property_id))
    session.add_all(PropertyTag(property_id=property_id, tag=tag) for tag in cleaned)
    await session.flush()
    return cleaned


async def count_by_status(session: AsyncSession, owner_id: str) -> Dict[PropertyStatus, int]:
    stmt = (
        select(Property.status, func.count(Property.id))
        .where(Property.owner_id == owner_id, Property.not_deleted())
        .group_by(Property.status)
    )
    counts = {status: 0 for status in PropertyStatus}
    for status, count in (await session.execute(stmt)).all():
        counts[PropertyStatus(status)] = count
    return counts


async def ids_for_owner(session: AsyncSession, owner_id: str) -> List:
    stmt = select(Property.id).where(Property.owner_id == owner_id, Property.not_deleted())
    return list((await session.execute(stmt)).scalars().all())


async def owner_unit_totals(session: AsyncSession, owner_id: str) -> Tuple[int, object]:
    """(live unit count, rented unit rent sum) across an owner's live properties."""
    stmt = (
        select(
            func.count(PropertyUnit.id),
            func.coalesce(
                func.sum(case((PropertyUnit.status == UnitStatus.RENTED, PropertyUnit.monthly_rent), else_=0)), 0
            ),
        )
        .join(Property, PropertyUnit.property_id == Property.id)
        .where(Property.owner_id == owner_id, Property.not_deleted(), PropertyUnit.not_deleted())
    )
    count, revenue = (await session.execute(stmt)).one()
    return count, revenue
